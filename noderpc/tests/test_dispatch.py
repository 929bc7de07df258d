import asyncio

import pytest

from noderpc.errors import ConnectionClosed
from noderpc.network.calls import CallRegistry
from noderpc.network.dispatch import DispatchLoop, LoopState
from noderpc.network.subscriptions import SubscriptionRegistry
from noderpc.network.transport.base import TransportClosed
from noderpc.network.transport.memory import MemoryTransport
from noderpc.network.writer import ConnectionWriter


class _BrokenTransport(MemoryTransport):
    async def send(self, data: str) -> None:
        raise TransportClosed("peer went away")


class _SlowTransport(MemoryTransport):
    def __init__(self) -> None:
        super().__init__()
        self.active = 0
        self.max_active = 0

    async def send(self, data: str) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.001)
        self.active -= 1
        await super().send(data)


@pytest.mark.asyncio
async def test_dispatch_routes_responses_and_notifications():
    transport = MemoryTransport()
    calls = CallRegistry()
    subscriptions = SubscriptionRegistry()
    loop = DispatchLoop(transport, calls, subscriptions)

    channel = calls.register("1")
    subscription = subscriptions.register("sub-1")
    loop.start()

    transport.feed({"jsonrpc": "2.0", "method": "eth_subscription", "params": {"subscription": "sub-1", "result": "h1"}})
    transport.feed({"jsonrpc": "2.0", "id": 1, "result": "0x10"})

    response = await asyncio.wait_for(channel.get(), timeout=1.0)
    assert response.result == "0x10"
    assert await asyncio.wait_for(subscription.channel.get(), timeout=1.0) == "h1"
    assert loop.frames_received == 2

    await loop.stop()
    assert loop.state is LoopState.STOPPED


@pytest.mark.asyncio
async def test_dispatch_reports_end_of_stream():
    transport = MemoryTransport()
    reasons = []
    loop = DispatchLoop(transport, CallRegistry(), SubscriptionRegistry(), on_terminated=reasons.append)

    loop.start()
    assert loop.state is LoopState.RUNNING
    transport.end()
    await asyncio.wait_for(loop.wait_stopped(), timeout=1.0)

    assert loop.state is LoopState.STOPPED
    assert len(reasons) == 1
    assert isinstance(reasons[0], TransportClosed)


@pytest.mark.asyncio
async def test_dispatch_stop_does_not_report_termination():
    reasons = []
    loop = DispatchLoop(MemoryTransport(), CallRegistry(), SubscriptionRegistry(), on_terminated=reasons.append)

    await loop.stop()
    loop.start()
    await asyncio.sleep(0)
    await loop.stop()
    await loop.stop()

    assert reasons == []
    assert loop.state is LoopState.STOPPED


@pytest.mark.asyncio
async def test_writer_serialises_concurrent_sends():
    transport = _SlowTransport()
    writer = ConnectionWriter(transport)

    await asyncio.gather(*(writer.send(f"frame-{index}") for index in range(10)))

    assert transport.max_active == 1
    assert transport.sent == [f"frame-{index}" for index in range(10)]


@pytest.mark.asyncio
async def test_writer_maps_transport_failure_to_connection_closed():
    writer = ConnectionWriter(_BrokenTransport())

    with pytest.raises(ConnectionClosed):
        await writer.send("frame")


@pytest.mark.asyncio
async def test_writer_refuses_frames_after_close():
    transport = MemoryTransport()
    writer = ConnectionWriter(transport)

    writer.close()

    assert writer.closed is True
    with pytest.raises(ConnectionClosed):
        await writer.send("frame")
    assert transport.sent == []
