from __future__ import annotations
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Sequence, Tuple, Union

# ========================================
#           INPUT VALIDATION HELPERS
# ========================================

# Ripple's base58 alphabet has the same characters as Bitcoin's (no 0, O, I, l)
_ADDRESS_RE = re.compile(r'^r[1-9A-HJ-NP-Za-km-z]{24,34}$')

_LIST_RE = re.compile(r'^\[(.*)\]$')

DEFAULT_COMMAND = "account_info"

ParamValue = Union[str, List[str]]


def is_ripple_address(s: str) -> bool:
    """
    returns True if the string looks like a classic account address
    (starts with 'r', base58 alphabet, 25-35 characters).
    """
    return isinstance(s, str) and bool(_ADDRESS_RE.fullmatch(s))


def parse_value(value: str) -> ParamValue:
    """
    '[a,b,c]' -> ['a', 'b', 'c'], '[]' -> [], anything else is kept as is.
    """
    match = _LIST_RE.fullmatch(value)
    if not match:
        return value
    inner = match.group(1).strip()
    if not inner:
        return []
    return [item.strip() for item in inner.split(',')]


def parse_command_line(args: Sequence[str]) -> Tuple[str, Dict[str, ParamValue]]:
    """
    Turn command line words into a command name and its params.

    - First word is the command name; 'account_info' when args is empty.
    - Remaining words are 'key:value' pairs split on the first colon.
    - Raises ValueError for a word without a colon or with an empty key.
    """
    words = list(args)
    command = words.pop(0) if words else DEFAULT_COMMAND
    params: Dict[str, ParamValue] = {}
    for word in words:
        key, sep, value = word.partition(':')
        if not sep or not key:
            raise ValueError(f"Expected key:value, got {word!r}")
        params[key] = parse_value(value)
    return command, params


# ========================================
#           LEDGER UNIT CONVERSIONS
# ========================================

# Ledger timestamps count seconds from 2000-01-01T00:00:00Z
RIPPLE_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)

DROPS_PER_XRP = Decimal(1_000_000)


def ripple_time_to_datetime(seconds: Union[int, str]) -> datetime:
    return RIPPLE_EPOCH + timedelta(seconds=int(seconds))


def drops_to_xrp(drops: Union[int, str]) -> Decimal:
    """'1500000' -> Decimal('1.5')"""
    try:
        return Decimal(str(drops)) / DROPS_PER_XRP
    except InvalidOperation as e:
        raise ValueError(f"Invalid drops amount: {drops!r}") from e


def to_decimal(value: Union[int, float, str]) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
