"""Transport abstractions and helpers for JSON-RPC messages."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import Any

from .errors import JsonRpcError, RpcError

DEFAULT_TIMEOUT_MSEC = 60_000


class MessageKind(enum.Enum):
    """The four shapes a JSON-RPC message can take."""

    REQUEST = "request"
    NOTIFICATION = "notification"
    RESPONSE = "response"
    ERROR = "error"


def classify_message(message: Any) -> MessageKind:
    """Tell which kind of JSON-RPC message ``message`` is."""
    if not isinstance(message, dict):
        raise JsonRpcError(RpcError.parse_error())
    if "method" in message:
        return MessageKind.REQUEST if "id" in message else MessageKind.NOTIFICATION
    if "error" in message:
        return MessageKind.ERROR
    if "result" in message:
        return MessageKind.RESPONSE
    raise JsonRpcError(RpcError.parse_error())


def message_request_id(message: Any) -> int | str | None:
    """Return the id a message carries, or None if it has none."""
    if not isinstance(message, dict):
        return None
    request_id = message.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, (int, str)):
        return None
    return request_id


@dataclass
class IOStream:
    """A side stream that is readable on the client and writable on the server."""

    stream: Any
    readable: bool


@dataclass
class TransportOptions:
    """Configuration for a transport."""

    timeout: int = DEFAULT_TIMEOUT_MSEC


class Transport(abc.ABC):
    """A channel that carries MCP messages between two peers."""

    @abc.abstractmethod
    async def start(self) -> Any:
        """Open the transport and return its stream, dispatcher and side stream."""

    @abc.abstractmethod
    async def shut_down(self) -> None:
        """Close the transport."""

    @abc.abstractmethod
    async def is_shut_down(self) -> bool:
        """Whether the transport has been closed."""