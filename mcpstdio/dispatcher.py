"""Sending MCP messages and reading them back from a line-delimited stream."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import json
import sys
from typing import Any, Dict, Optional, Tuple, Union

from .errors import (
    JsonRpcError,
    ProcessError,
    RpcError,
    StdioError,
    await_timeout,
)
from .transport import MessageKind, classify_message, message_request_id

CHANNEL_CAPACITY = 36
JSONRPC_VERSION = "2.0"

RequestId = Union[int, str]
PendingRequests = Dict[RequestId, "asyncio.Future[Any]"]

_END = object()


def _encode(message: dict, request_id: Optional[RequestId]) -> bytes:
    """Wrap ``message`` in a JSON-RPC envelope and serialise it as one line."""
    envelope: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
    if request_id is not None:
        envelope["id"] = request_id
    for key, value in message.items():
        if key in ("jsonrpc", "id"):
            continue
        envelope[key] = value.to_dict() if isinstance(value, RpcError) else value
    try:
        text = json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise JsonRpcError(RpcError.parse_error()) from exc
    return text.encode("utf-8") + b"\n"


def _decode(raw: bytes) -> dict:
    """Parse one received line into a JSON-RPC message."""
    try:
        text = raw.decode("utf-8")
        if text.endswith("\n"):
            text = text[:-1]
            if text.endswith("\r"):
                text = text[:-1]
        message = json.loads(text)
    except ValueError as exc:
        raise JsonRpcError(RpcError.parse_error()) from exc
    classify_message(message)
    return message


class MessageDispatcher:
    """Writes outgoing messages and waits for the responses to requests.

    A message to send is a dict without the ``jsonrpc`` member. A request
    carries an ``id`` member (usually ``None``) that the dispatcher replaces
    with a fresh id; a notification carries no ``id``; responses and errors
    are given the id of the request they answer through ``request_id``.
    """

    def __init__(
        self,
        pending_requests: PendingRequests,
        writer: Any,
        timeout_msec: int,
        first_id: int = 0,
    ) -> None:
        self.pending_requests = pending_requests
        self.timeout_msec = timeout_msec
        self._writer = writer
        self._ids = itertools.count(first_id)
        self._write_lock = asyncio.Lock()

    def request_id_for_message(
        self, message: dict, request_id: Optional[RequestId]
    ) -> Optional[RequestId]:
        """Return the id the outgoing message will carry."""
        kind = classify_message(message)
        if kind is MessageKind.REQUEST:
            if request_id is not None:
                raise ValueError("a request is given a fresh id; request_id must be None")
            return next(self._ids)
        if kind is MessageKind.NOTIFICATION:
            return None
        if request_id is None:
            raise ValueError("a response or error needs the id of the request it answers")
        return request_id

    async def send(
        self, message: dict, request_id: Optional[RequestId] = None
    ) -> Optional[dict]:
        """Send ``message``; for a request, wait for and return its response."""
        kind = classify_message(message)
        outgoing_id = self.request_id_for_message(message, request_id)

        future: Optional[asyncio.Future[Any]] = None
        if kind is MessageKind.REQUEST:
            future = asyncio.get_running_loop().create_future()
            self.pending_requests[outgoing_id] = future
        try:
            line = _encode(message, outgoing_id)
            async with self._write_lock:
                await self._write_line(line)
            if future is None:
                return None
            return await await_timeout(future, self.timeout_msec)
        finally:
            if future is not None:
                self.pending_requests.pop(outgoing_id, None)

    async def _write_line(self, line: bytes) -> None:
        try:
            result = self._writer.write(line)
            if inspect.isawaitable(result):
                await result
            flush = getattr(self._writer, "drain", None) or getattr(self._writer, "flush", None)
            if flush is not None:
                result = flush()
                if inspect.isawaitable(result):
                    await result
        except OSError as exc:
            raise StdioError(exc) from exc


class MessageStream:
    """Async iterator over incoming requests, notifications and unmatched errors."""

    def __init__(self, capacity: int = CHANNEL_CAPACITY) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=capacity)
        self._closed = False
        self.reader_task: Optional[asyncio.Task[None]] = None

    def __aiter__(self) -> MessageStream:
        return self

    async def __anext__(self) -> dict:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        return item

    async def _push(self, message: dict) -> None:
        await self._queue.put(message)

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_END)
        except asyncio.QueueFull:
            pass


async def _route(message: dict, stream: MessageStream, pending: PendingRequests) -> None:
    kind = classify_message(message)
    if kind in (MessageKind.REQUEST, MessageKind.NOTIFICATION):
        await stream._push(message)
        return
    request_id = message_request_id(message)
    if request_id is None:
        return
    future = pending.pop(request_id, None)
    if future is not None:
        if future.done():
            raise JsonRpcError(RpcError.internal_error())
        future.set_result(message)
    elif kind is MessageKind.ERROR:
        await stream._push(message)
    else:
        print(
            "Error: Received response does not correspond to any request. true",
            file=sys.stderr,
        )


async def _read_messages(
    reader: Any,
    stream: MessageStream,
    pending: PendingRequests,
    shutdown: asyncio.Event,
) -> None:
    stop = asyncio.ensure_future(shutdown.wait())
    next_line: Optional[asyncio.Future[bytes]] = None
    try:
        while True:
            next_line = asyncio.ensure_future(reader.readline())
            done, _ = await asyncio.wait(
                {next_line, stop}, return_when=asyncio.FIRST_COMPLETED
            )
            if next_line not in done:
                break
            try:
                raw = next_line.result()
            except (OSError, ValueError) as exc:
                raise ProcessError(f"Error reading from readable_std: {exc}") from exc
            if not raw:
                break
            await _route(_decode(raw), stream, pending)
    finally:
        stop.cancel()
        if next_line is not None and not next_line.done():
            next_line.cancel()
        stream._close()


def create_stream(
    reader: Any,
    writer: Any,
    error_io: Any,
    timeout_msec: int,
    shutdown: asyncio.Event,
) -> Tuple[MessageStream, MessageDispatcher, Any]:
    """Start reading ``reader`` and return the incoming stream, a dispatcher and ``error_io``.

    Must be called while an event loop is running.
    """
    pending: PendingRequests = {}
    stream = MessageStream()
    stream.reader_task = asyncio.get_running_loop().create_task(
        _read_messages(reader, stream, pending, shutdown)
    )
    dispatcher = MessageDispatcher(pending, writer, timeout_msec)
    return stream, dispatcher, error_io