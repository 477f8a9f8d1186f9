from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar, Union
import copy
import functools
import json


class RipplerError(Exception):
    """Base class for every fatal condition raised by the client."""
    pass
class TransportError(RipplerError):
    """Raised when the socket cannot be opened or fails mid-session."""
    pass
class ProtocolError(RipplerError):
    """Raised when an inbound frame or reply has an unexpected shape."""
    pass
class RemoteError(RipplerError):
    """
    Raised when the ledger answers with an `error` field.

    The full reply is kept on `document` so the operator can see every
    detail the server sent, not only the error code.
    """

    def __init__(self, document: Mapping[str, Any]) -> None:
        self.document = dict(document)
        self.error = self.document.get("error")
        detail = self.document.get("error_message") or self.document.get("error_exception")
        message = f"Remote error: {self.error}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
class UnknownAccountError(RipplerError):
    """Raised when an account alias is not in the address book."""

    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(f"Unknown account: {alias!r}")


class MessageKind(str, Enum):
    """Classification of an inbound document."""
    ERROR = "error"          # carries an `error` field, always terminal
    RESPONSE = "response"    # sole reply of a single-shot session
    EVENT = "event"          # one of many in a streaming session


@dataclass(frozen=True)
class Request:
    """
    Outbound request:
    {
    "command": "STRING",
    ...command specific fields
    }

    `command` is always serialized first. Built once and never mutated.
    """
    command: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.command, str) or not self.command:
            raise ValueError("'command' must be a non-empty string")
        params = copy.deepcopy({k: v for k, v in dict(self.params).items() if k != "command"})
        object.__setattr__(self, "params", MappingProxyType(params))

    @classmethod
    def build(cls, command: str, defaults: Optional[Mapping[str, Any]] = None,
              params: Optional[Mapping[str, Any]] = None) -> 'Request':
        """Merge caller params over command defaults; caller values win."""
        merged: Dict[str, Any] = dict(defaults or {})
        merged.update(params or {})
        return cls(command=command, params=merged)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"command": self.command}
        result.update(copy.deepcopy(dict(self.params)))
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'))


def parse_frame(raw: Union[str, bytes]) -> Dict[str, Any]:
    """Parse one inbound frame into a JSON object"""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Frame is not valid UTF-8: {e}") from e
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON: {e}") from e
    if not isinstance(document, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(document).__name__}")
    return document


def is_error(document: Mapping[str, Any]) -> bool:
    return bool(document.get("error"))


def classify(document: Mapping[str, Any], streaming: bool) -> MessageKind:
    if is_error(document):
        return MessageKind.ERROR
    return MessageKind.EVENT if streaming else MessageKind.RESPONSE


def require(document: Mapping[str, Any], *path: str) -> Any:
    """
    Walk nested keys of a reply, e.g. require(reply, "result", "lines").

    Raises ProtocolError naming the first missing key.
    """
    node: Any = document
    for i, key in enumerate(path):
        if not isinstance(node, Mapping) or key not in node:
            where = ".".join(path[:i + 1])
            raise ProtocolError(f"Reply is missing '{where}'")
        node = node[key]
    return node


_T = TypeVar("_T")


def reply_shape(build: Callable[..., _T]) -> Callable[..., _T]:
    """
    Wrap a `from_*` constructor so that a reply field of the wrong type or
    value surfaces as ProtocolError instead of a bare Python exception.
    """

    @functools.wraps(build)
    def wrapper(cls: Any, data: Any) -> _T:
        try:
            return build(cls, data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ProtocolError(f"Malformed {cls.__name__} in reply: {e!r}") from e

    return wrapper
