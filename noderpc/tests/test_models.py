import pytest
from pydantic import ValidationError

from noderpc.errors import DecodeError
from noderpc.models.frames import normalize_id
from noderpc.models.header import RawHeader
from noderpc.models.result import RpcResult


@pytest.mark.parametrize(
    ("value", "expected"),
    [(7, "7"), (7.0, "7"), ("7", "7"), ("0xabc", "0xabc"), (True, True)],
)
def test_normalize_id(value, expected):
    assert normalize_id(value) == expected


def test_raw_header_decodes_hex_quantities_and_keeps_extras():
    header = RawHeader.model_validate(
        {"number": "0x6", "timestamp": "0x5f5e100", "parentHash": "0xab", "miner": "0xcd"}
    )

    assert header.number == 6
    assert header.timestamp == 100_000_000
    assert header.parent_hash == "0xab"
    assert header.model_extra == {"miner": "0xcd"}


def test_raw_header_rejects_decimal_strings():
    with pytest.raises(ValidationError):
        RawHeader.model_validate({"number": "6"})


def test_result_decode_to_caller_type():
    result = RpcResult(value=["0x1", "0x2"], request_id="4")

    assert result.decode(list[str]) == ["0x1", "0x2"]
    assert result.raw == b'["0x1","0x2"]'
    with pytest.raises(DecodeError):
        result.decode(int)
