import pytest

from mcpstdio.errors import JsonRpcError, RpcError
from mcpstdio.transport import (
    IOStream,
    MessageKind,
    Transport,
    TransportOptions,
    classify_message,
    message_request_id,
)


@pytest.mark.parametrize(
    "message, kind",
    [
        ({"jsonrpc": "2.0", "id": 1, "method": "ping"}, MessageKind.REQUEST),
        ({"jsonrpc": "2.0", "method": "notifications/initialized"}, MessageKind.NOTIFICATION),
        ({"jsonrpc": "2.0", "id": 1, "result": {}}, MessageKind.RESPONSE),
        ({"jsonrpc": "2.0", "id": 1, "error": {"code": 1, "message": "x"}}, MessageKind.ERROR),
    ],
)
def test_classify_message(message, kind):
    assert classify_message(message) is kind


@pytest.mark.parametrize("bad", [{"jsonrpc": "2.0"}, [], "text", None])
def test_classify_rejects_unknown(bad):
    with pytest.raises(JsonRpcError) as info:
        classify_message(bad)
    assert info.value.error == RpcError.parse_error()


@pytest.mark.parametrize("request_id", [5, "abc"])
def test_message_request_id_returns_id(request_id):
    assert message_request_id({"id": request_id, "result": {}}) == request_id


@pytest.mark.parametrize("message", [{"method": "x"}, {"id": None}, {"id": True}, "nope"])
def test_message_request_id_missing(message):
    assert message_request_id(message) is None


def test_default_timeout():
    assert TransportOptions().timeout == 60_000


def test_custom_timeout():
    assert TransportOptions(timeout=5).timeout == 5


def test_io_stream_direction():
    sentinel = object()
    stream = IOStream(sentinel, readable=True)
    assert stream.stream is sentinel
    assert stream.readable is True


def test_transport_is_abstract():
    with pytest.raises(TypeError):
        Transport()