"""A transport that carries MCP messages over standard input and output."""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .dispatcher import MessageDispatcher, MessageStream, create_stream
from .errors import StdioError, TransportError
from .transport import IOStream, Transport, TransportOptions

_CREATE_NO_WINDOW = 0x08000000
_LINE_LIMIT = 16 * 1024 * 1024


class _BlockingLineReader:
    """Reads lines from a blocking binary file without stalling the event loop."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream

    async def readline(self) -> bytes:
        return await asyncio.to_thread(self._stream.readline)


class _BlockingWriter:
    """Writes bytes to a blocking binary file and flushes it."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream

    def write(self, data: bytes) -> None:
        self._stream.write(data)

    def flush(self) -> None:
        self._stream.flush()


def _binary(stream: Any) -> Any:
    return getattr(stream, "buffer", stream)


class StdioTransport(Transport):
    """Carries MCP messages over stdio.

    Built with ``StdioTransport(options)`` it serves over the current
    process's own standard streams. Built with ``create_with_server_launch``
    it launches a server process and talks to it through its pipes.
    """

    def __init__(self, options: Optional[TransportOptions] = None) -> None:
        self.options = options if options is not None else TransportOptions()
        self.command: Optional[str] = None
        self.args: Optional[List[str]] = None
        self.env: Optional[Dict[str, str]] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._shutdown: Optional[asyncio.Event] = None
        self._is_shut_down = False

    @classmethod
    def create_with_server_launch(
        cls,
        command: str,
        args: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        options: Optional[TransportOptions] = None,
    ) -> StdioTransport:
        """Make a client transport that launches ``command`` with ``args`` on start."""
        transport = cls(options)
        transport.command = str(command)
        transport.args = list(args)
        transport.env = dict(env) if env is not None else None
        return transport

    def launch_command(self) -> Tuple[str, List[str]]:
        """Return the program and arguments used to launch the server."""
        command = self.command or ""
        args = list(self.args or [])
        if sys.platform == "win32":
            return "cmd.exe", ["/c", command, *args]
        return command, args

    async def start(self) -> Tuple[MessageStream, MessageDispatcher, IOStream]:
        """Open the streams and return the incoming messages, a dispatcher and the side stream.

        In client mode the side stream is the server's stderr, readable; in
        server mode it is this process's stderr, writable.
        """
        shutdown = asyncio.Event()
        self._shutdown = shutdown

        if self.command is None:
            return create_stream(
                _BlockingLineReader(_binary(sys.stdin)),
                _BlockingWriter(_binary(sys.stdout)),
                IOStream(_binary(sys.stderr), readable=False),
                self.options.timeout,
                shutdown,
            )

        program, args = self.launch_command()
        env = {**os.environ, **self.env} if self.env else None
        extra: Dict[str, Any] = {}
        if sys.platform == "win32":
            extra["creationflags"] = _CREATE_NO_WINDOW
        else:
            extra["start_new_session"] = True
        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                limit=_LINE_LIMIT,
                **extra,
            )
        except OSError as exc:
            raise StdioError(exc) from exc

        if process.stdin is None:
            raise TransportError("Unable to retrieve stdin.")
        if process.stdout is None:
            raise TransportError("Unable to retrieve stdout.")
        if process.stderr is None:
            raise TransportError("Unable to retrieve stderr.")
        self._process = process

        return create_stream(
            process.stdout,
            process.stdin,
            IOStream(process.stderr, readable=True),
            self.options.timeout,
            shutdown,
        )

    async def is_shut_down(self) -> bool:
        return self._is_shut_down

    async def shut_down(self) -> None:
        """Signal the reader to stop and terminate the launched server, if any."""
        if self._shutdown is not None:
            self._shutdown.set()
            self._is_shut_down = True

        process = self._process
        if process is None:
            return
        try:
            if process.returncode is None:
                process.kill()
            await process.wait()
        except ProcessLookupError:
            pass
        except OSError as exc:
            raise StdioError(exc) from exc