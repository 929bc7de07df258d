import pytest

from noderpc.errors import ConnectionClosed, NotFound
from noderpc.models.header import RawHeader
from noderpc.stub import StubNodeClient


@pytest.mark.asyncio
async def test_stub_answers_from_tables():
    stub = StubNodeClient(
        mock_query={"query { block { number } }": {"block": {"number": 3}}},
        mock_rpc={"hello": "world"},
    )

    result = await stub.call("hello")
    data = await stub.execute_query("query { block { number } }")

    assert result.value == "world"
    assert data == {"block": {"number": 3}}

    data["block"]["number"] = 99
    assert (await stub.execute_query("query { block { number } }"))["block"]["number"] == 3


@pytest.mark.asyncio
async def test_stub_unknown_keys_raise_not_found():
    stub = StubNodeClient()

    with pytest.raises(NotFound, match="not found"):
        await stub.call("missing")
    with pytest.raises(NotFound, match="not found"):
        await stub.execute_query("query { nothing }")


@pytest.mark.asyncio
async def test_stub_chain_head_replays_mock_heads():
    stub = StubNodeClient(mock_heads=[{"number": "0x1"}, {"number": "0x2"}])

    subscription = await stub.subscribe_chain_head()
    await stub.stop()
    headers = [header async for header in subscription]

    assert [header.number for header in headers] == [1, 2]
    assert all(isinstance(header, RawHeader) for header in headers)
    with pytest.raises(ConnectionClosed):
        await stub.call_with_timeout(1.0, "hello")
