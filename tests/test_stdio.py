import asyncio
import io
import json
import sys

import pytest

from mcpstdio.errors import SdkError, StdioError
from mcpstdio.stdio import StdioTransport
from mcpstdio.transport import DEFAULT_TIMEOUT_MSEC, TransportOptions

ECHO_SERVER = """
import json, os, sys
sys.stdout.write(json.dumps({"jsonrpc": "2.0", "method": "env",
    "params": {"value": os.environ.get("MCPSTDIO_TEST_VALUE")}}) + "\\n")
sys.stdout.flush()
for line in sys.stdin:
    msg = json.loads(line)
    if "method" in msg and "id" in msg:
        sys.stdout.write(json.dumps({"jsonrpc": "2.0", "id": msg["id"],
            "result": {"method": msg["method"]}}) + "\\n")
        sys.stdout.flush()
"""

SILENT_SERVER = """
import sys
for line in sys.stdin:
    pass
"""


def test_default_options_use_default_timeout():
    transport = StdioTransport()
    assert transport.options.timeout == DEFAULT_TIMEOUT_MSEC
    assert transport.command is None


def test_launch_command_on_posix(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    transport = StdioTransport.create_with_server_launch("npx", ["-y", "pkg"])
    assert transport.launch_command() == ("npx", ["-y", "pkg"])


def test_launch_command_on_windows_wraps_with_cmd(monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    transport = StdioTransport.create_with_server_launch("npx", ["-y", "pkg"])
    assert transport.launch_command() == ("cmd.exe", ["/c", "npx", "-y", "pkg"])


@pytest.mark.asyncio
async def test_not_shut_down_before_start():
    transport = StdioTransport()
    await transport.shut_down()
    assert await transport.is_shut_down() is False


@pytest.mark.asyncio
async def test_client_mode_round_trip_and_env():
    transport = StdioTransport.create_with_server_launch(
        sys.executable,
        ["-c", ECHO_SERVER],
        {"MCPSTDIO_TEST_VALUE": "hello"},
        TransportOptions(timeout=10_000),
    )
    stream, dispatcher, error_io = await transport.start()
    try:
        assert error_io.readable is True
        first = await asyncio.wait_for(stream.__anext__(), 10)
        assert first["method"] == "env"
        assert first["params"] == {"value": "hello"}

        response = await dispatcher.send({"method": "ping", "id": None})
        assert response["result"] == {"method": "ping"}
        assert response["id"] == 0

        second = await dispatcher.send({"method": "tools/list", "id": None})
        assert second["id"] == 1
        assert dispatcher.pending_requests == {}
    finally:
        await transport.shut_down()
    assert await transport.is_shut_down() is True
    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(stream.__anext__(), 10)


@pytest.mark.asyncio
async def test_client_mode_request_times_out():
    transport = StdioTransport.create_with_server_launch(
        sys.executable, ["-c", SILENT_SERVER], None, TransportOptions(timeout=200)
    )
    _, dispatcher, _ = await transport.start()
    try:
        with pytest.raises(SdkError) as info:
            await dispatcher.send({"method": "ping", "id": None})
        assert info.value.data == {"timeout": 200}
    finally:
        await transport.shut_down()


@pytest.mark.asyncio
async def test_spawn_failure_raises_stdio_error(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "platform", "linux")
    missing = str(tmp_path / "no-such-program")
    transport = StdioTransport.create_with_server_launch(missing, [])
    with pytest.raises(StdioError):
        await transport.start()


@pytest.mark.asyncio
async def test_server_mode_uses_process_stdio(monkeypatch):
    request = {"jsonrpc": "2.0", "method": "ping", "id": 7}
    stdin = io.TextIOWrapper(io.BytesIO((json.dumps(request) + "\n").encode()))
    out_buffer = io.BytesIO()
    stdout = io.TextIOWrapper(out_buffer)
    monkeypatch.setattr(sys, "stdin", stdin)
    monkeypatch.setattr(sys, "stdout", stdout)

    transport = StdioTransport(TransportOptions(timeout=1000))
    stream, dispatcher, error_io = await transport.start()
    assert error_io.readable is False

    received = [message async for message in stream]
    assert received == [request]

    result = await dispatcher.send({"result": {}}, request_id=7)
    assert result is None
    written = json.loads(out_buffer.getvalue().decode())
    assert written == {"jsonrpc": "2.0", "id": 7, "result": {}}

    await transport.shut_down()
    assert await transport.is_shut_down() is True