from __future__ import annotations
from typing import Dict, Mapping, Optional

from shared.message import UnknownAccountError
from shared.utils import is_ripple_address


class AddressBook:
    """Alias -> account address lookup built from the configured contacts."""

    def __init__(self, contacts: Optional[Mapping[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(contacts or {})

    def get(self, alias: str) -> Optional[str]:
        return self._data.get(alias)

    def resolve(self, alias_or_address: str) -> str:
        """Return the address for an alias; literal addresses pass through."""
        if not isinstance(alias_or_address, str):
            raise UnknownAccountError(str(alias_or_address))
        if is_ripple_address(alias_or_address):
            return alias_or_address
        address = self._data.get(alias_or_address)
        if address is None:
            raise UnknownAccountError(alias_or_address)
        return address
