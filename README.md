# mcpstdio

An asyncio transport for the Model Context Protocol (MCP). It carries
newline-delimited JSON-RPC messages over standard input and output.

It can be used from either end:

- **Server side**: talk over the current process's stdin and stdout. This
  process's stderr is handed back for diagnostics.
- **Client side**: launch an MCP server as a subprocess and talk to it over its
  pipes. The server's stderr is handed back for reading.

Outgoing requests get fresh integer ids, counting up from 0. Each request waits
for the matching response, with a timeout in milliseconds (60 000 by default).
Incoming requests and notifications are delivered as an async stream. So are
incoming errors that match no pending request.

## Installation

```
pip install mcpstdio
```

It needs nothing beyond the standard library.

## Launching a server and talking to it

```python
import asyncio

from mcpstdio.stdio import StdioTransport
from mcpstdio.transport import TransportOptions


async def run() -> None:
    transport = StdioTransport.create_with_server_launch(
        "npx",
        ["-y", "@modelcontextprotocol/server-everything"],
        None,
        TransportOptions(timeout=30_000),
    )
    stream, dispatcher, error_io = await transport.start()

    # A request carries an "id" member; the dispatcher fills in a fresh id.
    response = await dispatcher.send({"method": "ping", "id": None}, None)
    print(response)

    await transport.shut_down()


asyncio.run(run())
```

On Windows the command is run through `cmd.exe /c`. Elsewhere it starts in a
new session. Variables given in `env` are added to the current environment.
`StdioTransport.launch_command()` returns the program and arguments that will
be used.

`start()` returns three things:

- `stream`: a `MessageStream`, to be read with `async for`. It yields incoming
  requests and notifications, as well as errors that answer no pending request.
  It ends when the input reaches end of file or the transport is shut down. It
  also ends when reading fails. The failure is then held by the reader task in
  `stream.reader_task`.
- `dispatcher`: a `MessageDispatcher`. `send(message, request_id)` writes one
  message. The message is a dict without the `jsonrpc` member, and the
  dispatcher adds `"jsonrpc": "2.0"` and the id. What each kind of message
  needs:
  - A request includes an `id` member, and `request_id` must be `None`. A fresh
    id is assigned, and the call waits for the response and returns it as a
    dict.
  - A notification has a `method` and no `id`.
  - A response (`result`) or error (`error`) is given the id of the request it
    answers through `request_id`.

  Only requests return a value. Giving the wrong `request_id` raises
  `ValueError`. An `RpcError` value in the message is written out in its JSON
  form.
- `error_io`: an `IOStream`, whose `stream` is the side stream and whose
  `readable` tells which way it goes. On the client side it is the subprocess's
  stderr, for reading. On the server side it is this process's stderr, for
  writing.

An incoming response that matches no pending request is reported on stderr and
dropped.

`shut_down()` stops the reader. If a server was launched, it is killed and then
waited for. `is_shut_down()` tells whether `shut_down()` has been called after a
`start()`.

## Serving over stdio

```python
import asyncio

from mcpstdio.stdio import StdioTransport
from mcpstdio.transport import TransportOptions


async def serve() -> None:
    transport = StdioTransport(TransportOptions())
    stream, dispatcher, error_io = await transport.start()

    async for message in stream:
        if "id" in message:
            await dispatcher.send({"result": {}}, message["id"])


asyncio.run(serve())
```

## Errors

Everything the transport raises for a transport failure derives from
`mcpstdio.errors.TransportError`:

| Exception | Raised when |
|---|---|
| `JsonRpcError` | A message is not valid JSON-RPC, cannot be serialised, or a response arrives twice for one request. It carries an `RpcError` in `.error`, such as `RpcError.parse_error()` or `RpcError.internal_error()`. |
| `SdkError` | A request timed out waiting for its response (`SdkError.request_timeout(ms)`, code -32001). |
| `StdioError` | Writing to a stream failed, the server could not be launched, or killing it failed. |
| `ProcessError` | Reading from the input stream failed. |
| `TransportError` | A pipe of the launched process was missing. |

`ChannelSendError` and `ResponseChannelError` are also defined in
`mcpstdio.errors` for callers to use. The transport itself does not raise them.

`RpcError` is a JSON-RPC error object with `code`, `message` and `data` fields.
It has the constructors `parse_error()`, `internal_error()` and
`method_not_found()`, and the methods `with_message()`, `to_dict()` and
`from_dict()`.

`mcpstdio.errors.await_timeout(awaitable, timeout_msec)` awaits anything under
a millisecond timeout and raises `SdkError.request_timeout` when the time runs
out.

## Message helpers

`mcpstdio.transport.classify_message(message)` tells which `MessageKind` a
JSON-RPC dict is: `REQUEST`, `NOTIFICATION`, `RESPONSE` or `ERROR`. It raises
`JsonRpcError` for anything else. `message_request_id(message)` returns the
integer or string id of a message, or `None` if it has none.

`mcpstdio.transport.Transport` is the abstract base class with `start`,
`shut_down` and `is_shut_down`. `StdioTransport` implements it.

## What it does not do

This package is only the transport. It does not perform the MCP `initialize`
handshake, and it has no client or server runtime, tool registry or request
handlers. It has no command-line program. Code built on top of it must handle
the meaning of the messages.