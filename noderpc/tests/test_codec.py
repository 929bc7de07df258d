import json

import pytest

from noderpc.errors import DecodeError
from noderpc.models.frames import RpcNotification, RpcResponse
from noderpc.network.codec import decode_frame, encode_request


def test_encode_request_shape():
    frame = json.loads(encode_request("7", "eth_getBalance", ["0xabc", "latest"]))

    assert frame == {
        "jsonrpc": "2.0",
        "id": "7",
        "method": "eth_getBalance",
        "params": ["0xabc", "latest"],
    }


def test_encode_request_without_params_sends_empty_list():
    frame = json.loads(encode_request("1", "ping"))

    assert frame["params"] == []


def test_decode_response_with_result():
    frame = decode_frame('{"jsonrpc":"2.0","id":"1","result":"ok"}')

    assert isinstance(frame, RpcResponse)
    assert frame.id == "1"
    assert frame.result == "ok"
    assert frame.error is None


def test_decode_response_numeric_id_is_normalized():
    frame = decode_frame(b'{"jsonrpc":"2.0","id":42,"result":null}')

    assert isinstance(frame, RpcResponse)
    assert frame.id == "42"
    assert frame.result is None


def test_decode_error_response():
    frame = decode_frame(
        json.dumps({"jsonrpc": "2.0", "id": "3", "error": {"code": -32601, "message": "method not found"}})
    )

    assert isinstance(frame, RpcResponse)
    assert frame.error is not None
    assert frame.error.code == -32601
    assert frame.error.message == "method not found"


def test_decode_notification():
    raw = json.dumps(
        {
            "jsonrpc": "2.0",
            "method": "eth_subscription",
            "params": {"subscription": "sub-1", "result": {"number": "0x6"}},
        }
    )

    frame = decode_frame(raw)

    assert isinstance(frame, RpcNotification)
    assert frame.params.subscription == "sub-1"
    assert frame.params.result == {"number": "0x6"}


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        '[{"jsonrpc":"2.0","id":"1","result":1}]',
        '{"jsonrpc":"2.0","id":"1"}',
        '{"jsonrpc":"2.0","id":"9","method":"ask","params":[]}',
        '{"jsonrpc":"2.0","method":"eth_subscription","params":[1]}',
        '{"jsonrpc":"2.0","method":"eth_subscription","params":{"result":1}}',
        '{"jsonrpc":"2.0","id":"1","error":{"message":"no code"}}',
        b"\xff\xfe",
    ],
)
def test_decode_rejects_other_frames(raw):
    with pytest.raises(DecodeError):
        decode_frame(raw)
