import asyncio
import json
import socket

import pytest
import websockets

from noderpc.config import ClientSettings
from noderpc.errors import ConnectError, ConnectionClosed
from noderpc.network.client import NodeClient


async def _mock_node(ws) -> None:
    async for message in ws:
        request = json.loads(message)
        method = request["method"]
        if method == "ping":
            await ws.send(json.dumps({"jsonrpc": "2.0", "id": request["id"], "result": "ok"}))
        elif method == "eth_subscribe":
            await ws.send(json.dumps({"jsonrpc": "2.0", "id": request["id"], "result": "sub-1"}))
            await ws.send(
                json.dumps(
                    {
                        "jsonrpc": "2.0",
                        "method": "eth_subscription",
                        "params": {"subscription": "sub-1", "result": {"number": "0x6", "hash": "0x01"}},
                    }
                )
            )
        elif method == "hang_up":
            await ws.close()
            return
        else:
            await ws.send(
                json.dumps(
                    {"jsonrpc": "2.0", "id": request["id"], "error": {"code": -32601, "message": "not found"}}
                )
            )


async def _start_node():
    server = await websockets.serve(_mock_node, "127.0.0.1", 0)
    port = list(server.sockets)[0].getsockname()[1]
    return server, f"ws://127.0.0.1:{port}"


async def _close_node(server) -> None:
    server.close()
    await server.wait_closed()


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_ping_over_websocket():
    server, url = await _start_node()
    try:
        client = await NodeClient.connect(url, settings=ClientSettings())
        result = await client.call_with_timeout(1.0, "ping")
        assert result.value == "ok"
        await client.stop()
        await client.stop()
    finally:
        await _close_node(server)


@pytest.mark.asyncio
async def test_chain_head_over_websocket():
    server, url = await _start_node()
    try:
        async with await NodeClient.connect(url, settings=ClientSettings()) as client:
            subscription = await client.subscribe_chain_head()
            header = await asyncio.wait_for(subscription.__anext__(), timeout=1.0)

            assert subscription.id == "sub-1"
            assert header.number == 6
            assert header.hash == "0x01"
    finally:
        await _close_node(server)


@pytest.mark.asyncio
async def test_server_hang_up_closes_client():
    server, url = await _start_node()
    try:
        client = await NodeClient.connect(url, settings=ClientSettings())
        with pytest.raises(ConnectionClosed):
            await client.call("hang_up", timeout=5.0)
        assert client.closed is True
        await client.stop()
    finally:
        await _close_node(server)


@pytest.mark.asyncio
async def test_connect_to_unreachable_endpoint_fails():
    settings = ClientSettings(connect_timeout_seconds=2.0)

    with pytest.raises(ConnectError):
        await NodeClient.connect(f"ws://127.0.0.1:{_unused_port()}", settings=settings)


@pytest.mark.asyncio
async def test_connect_to_invalid_url_fails():
    with pytest.raises(ConnectError):
        await NodeClient.connect("ws://invalid", settings=ClientSettings(connect_timeout_seconds=2.0))
