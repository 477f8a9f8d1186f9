from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

from shared.message import reply_shape
from shared.utils import drops_to_xrp, to_decimal

from .contacts import AddressBook

XRP = "XRP"


@dataclass(frozen=True)
class Money:
    """An amount of XRP or of an issued currency (IOU)."""
    amount: Decimal
    currency: str
    issuer: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.currency == XRP

    def to_hash(self) -> Dict[str, str]:
        """The {currency, issuer} shape used by book_offers"""
        if self.is_native or self.issuer is None:
            return {"currency": self.currency}
        return {"currency": self.currency, "issuer": self.issuer}

    @classmethod
    @reply_shape
    def from_amount(cls, amount: Union[str, int, Mapping[str, Any]]) -> 'Money':
        """
        Build from a protocol Amount field:
        drops as a string ("1000000") or {"currency", "issuer", "value"}.
        """
        if isinstance(amount, Mapping):
            return cls(
                amount=to_decimal(amount.get("value", "0")),
                currency=str(amount["currency"]),
                issuer=amount.get("issuer"),
            )
        return cls(amount=drops_to_xrp(amount), currency=XRP)

    def __str__(self) -> str:
        value = f"{self.amount.normalize():f}"
        if self.issuer:
            return f"{value} {self.currency}/{self.issuer}"
        return f"{value} {self.currency}"


def _is_number(s: str) -> bool:
    try:
        to_decimal(s)
        return True
    except ValueError:
        return False


def parse_money(text: Union[str, Mapping[str, Any]], contacts: Optional[AddressBook] = None) -> Money:
    """
    Parse "amount/currency/issuer", "currency/issuer" or "XRP".

    A mapping with currency (and issuer) is accepted as is. Known issuer
    aliases are replaced by their address when contacts is given.
    """
    if isinstance(text, Mapping):
        if "currency" not in text:
            raise ValueError(f"Missing currency in {dict(text)!r}")
        amount = to_decimal(text.get("value", "0"))
        currency, issuer = str(text["currency"]), text.get("issuer")
    else:
        parts = str(text).strip().split("/")
        if len(parts) == 3:
            amount, currency, issuer = to_decimal(parts[0]), parts[1], parts[2]
        elif len(parts) == 2 and _is_number(parts[0]):
            # "0/XRP"
            amount, currency, issuer = to_decimal(parts[0]), parts[1], None
        elif len(parts) == 2:
            amount, currency, issuer = Decimal(0), parts[0], parts[1]
        elif len(parts) == 1:
            amount, currency, issuer = Decimal(0), parts[0], None
        else:
            raise ValueError(f"Expected amount/currency/issuer, got {text!r}")

    if not currency:
        raise ValueError(f"Missing currency in {text!r}")
    currency = currency.upper()
    if currency == XRP:
        issuer = None
    elif not issuer:
        raise ValueError(f"Currency {currency} needs an issuer")
    elif contacts is not None:
        # unknown names go out as typed; the ledger rejects bad issuers itself
        issuer = contacts.get(issuer) or issuer
    return Money(amount=amount, currency=currency, issuer=issuer)
