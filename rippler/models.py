from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from shared.message import reply_shape
from shared.utils import drops_to_xrp, ripple_time_to_datetime, to_decimal

from .money import Money


def _short(value: Optional[str], size: int = 8) -> str:
    if not value:
        return "?"
    return value[:size] + "..." if len(value) > size else value


def _when(moment: Optional[datetime]) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S") if moment else "?"


@dataclass
class Account:
    address: str
    balance: Decimal          # in XRP
    sequence: Optional[int] = None
    owner_count: Optional[int] = None

    @classmethod
    @reply_shape
    def from_data(cls, data: Mapping[str, Any]) -> 'Account':
        """From account_info result.account_data"""
        return cls(
            address=data.get("Account", "?"),
            balance=drops_to_xrp(data.get("Balance", "0")),
            sequence=data.get("Sequence"),
            owner_count=data.get("OwnerCount"),
        )

    def __str__(self) -> str:
        return f"{self.address} balance: {self.balance.normalize():f} XRP seq: {self.sequence}"


@dataclass
class Ledger:
    index: Optional[int]
    hash: Optional[str]
    close_time: Optional[datetime]
    txn_count: int = 0

    @classmethod
    @reply_shape
    def from_message(cls, message: Mapping[str, Any]) -> 'Ledger':
        """
        From a ledgerClosed event or the result of a subscribe response.
        Both carry ledger_index, ledger_hash and ledger_time.
        """
        ledger_time = message.get("ledger_time")
        return cls(
            index=message.get("ledger_index"),
            hash=message.get("ledger_hash"),
            close_time=ripple_time_to_datetime(ledger_time) if ledger_time is not None else None,
            txn_count=int(message.get("txn_count") or 0),
        )

    def __str__(self) -> str:
        text = f"Ledger {self.index} [{_short(self.hash)}] {_when(self.close_time)}"
        if self.txn_count:
            text += f" txns: {self.txn_count}"
        return text


@dataclass
class Transaction:
    kind: str
    account: str
    destination: Optional[str]
    amount: Optional[Money]
    fee: Optional[Decimal]
    result: Optional[str]
    hash: Optional[str]
    date: Optional[datetime]
    ledger_index: Optional[int] = None

    @classmethod
    @reply_shape
    def from_message(cls, message: Mapping[str, Any]) -> 'Transaction':
        """
        From an account_tx entry ({"tx", "meta", ...}) or a transaction
        stream event ({"transaction", "meta", "engine_result", ...}).
        """
        tx: Dict[str, Any] = dict(message.get("tx") or message.get("transaction") or message)
        meta = message.get("meta") or {}
        result = message.get("engine_result")
        if result is None and isinstance(meta, Mapping):
            result = meta.get("TransactionResult")
        amount = tx.get("Amount")
        date = tx.get("date")
        return cls(
            kind=tx.get("TransactionType", "?"),
            account=tx.get("Account", "?"),
            destination=tx.get("Destination"),
            amount=Money.from_amount(amount) if amount is not None else None,
            fee=drops_to_xrp(tx["Fee"]) if "Fee" in tx else None,
            result=result,
            hash=tx.get("hash"),
            date=ripple_time_to_datetime(date) if date is not None else None,
            ledger_index=tx.get("ledger_index", message.get("ledger_index")),
        )

    def __str__(self) -> str:
        parts = [_when(self.date), self.kind, self.account]
        if self.destination:
            parts.append(f"-> {self.destination}")
        if self.amount is not None:
            parts.append(str(self.amount))
        if self.fee is not None:
            parts.append(f"fee {self.fee.normalize():f} XRP")
        if self.result:
            parts.append(self.result)
        parts.append(f"[{_short(self.hash)}]")
        return " ".join(parts)


@dataclass
class Line:
    """A trust line from account_lines"""
    account: str
    currency: str
    balance: Decimal
    limit: Decimal
    limit_peer: Decimal

    @classmethod
    @reply_shape
    def from_dict(cls, data: Mapping[str, Any]) -> 'Line':
        return cls(
            account=data.get("account", "?"),
            currency=data.get("currency", "?"),
            balance=to_decimal(data.get("balance", "0")),
            limit=to_decimal(data.get("limit", "0")),
            limit_peer=to_decimal(data.get("limit_peer", "0")),
        )

    def __str__(self) -> str:
        return (f"{self.currency} balance: {self.balance.normalize():f} "
                f"(limit {self.limit.normalize():f}) with {self.account}")


def format_account(data: Mapping[str, Any]) -> str:
    return str(Account.from_data(data))


def format_ledger(message: Mapping[str, Any]) -> str:
    return str(Ledger.from_message(message))


def format_transaction(message: Mapping[str, Any]) -> str:
    return str(Transaction.from_message(message))


def format_line(data: Mapping[str, Any]) -> str:
    return str(Line.from_dict(data))
