"""Errors raised by the transport layer, and a timeout helper."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Any, Awaitable, TypeVar

T = TypeVar("T")

_PARSE_ERROR = -32700
_METHOD_NOT_FOUND = -32601
_INTERNAL_ERROR = -32603
_REQUEST_TIMEOUT = -32001


class TransportError(Exception):
    """Base class for every transport failure."""


class ChannelSendError(TransportError):
    """A message could not be handed on to an in-process channel."""

    def __init__(self, channel: str = "Broadcast") -> None:
        self.channel = channel
        super().__init__(f"{channel} SendError: Failed to send a message.")


class StdioError(TransportError):
    """An I/O operation on a standard stream failed."""

    def __init__(self, cause: OSError) -> None:
        self.cause = cause
        super().__init__(f"Send Error: {cause}")


@dataclass(frozen=True)
class RpcError:
    """A JSON-RPC error object."""

    code: int
    message: str
    data: Any = None

    @classmethod
    def parse_error(cls) -> RpcError:
        return cls(_PARSE_ERROR, "Parse error")

    @classmethod
    def internal_error(cls) -> RpcError:
        return cls(_INTERNAL_ERROR, "Internal error")

    @classmethod
    def method_not_found(cls) -> RpcError:
        return cls(_METHOD_NOT_FOUND, "Method not found")

    def with_message(self, message: str) -> RpcError:
        """Return a copy carrying a different message."""
        return replace(self, message=message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result

    @classmethod
    def from_dict(cls, data: Any) -> RpcError:
        """Build an error object from its JSON form."""
        if not isinstance(data, dict):
            raise JsonRpcError(cls.parse_error())
        code = data.get("code")
        message = data.get("message")
        if not isinstance(code, int) or isinstance(code, bool) or not isinstance(message, str):
            raise JsonRpcError(cls.parse_error())
        return cls(code, message, data.get("data"))


class JsonRpcError(TransportError):
    """A transport failure described by a JSON-RPC error object."""

    def __init__(self, error: RpcError) -> None:
        self.error = error
        super().__init__(error.message)


class SdkError(TransportError):
    """An error raised by the transport itself rather than the peer."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)

    @classmethod
    def request_timeout(cls, timeout_msec: int) -> SdkError:
        return cls(_REQUEST_TIMEOUT, "Request timed out", {"timeout": timeout_msec})


class ProcessError(TransportError):
    """Reading from or managing a child process failed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Process error{detail}")


class ResponseChannelError(TransportError):
    """The channel that should deliver a response was closed."""

    def __init__(self, message: str = "channel closed") -> None:
        super().__init__(message)


async def await_timeout(awaitable: Awaitable[T], timeout_msec: int) -> T:
    """Await ``awaitable``, failing with a request timeout after ``timeout_msec``."""
    try:
        return await asyncio.wait_for(awaitable, timeout_msec / 1000)
    except asyncio.TimeoutError as exc:
        raise SdkError.request_timeout(timeout_msec) from exc
    except TransportError:
        raise
    except OSError as exc:
        raise StdioError(exc) from exc