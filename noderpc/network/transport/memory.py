"""In-process transport for tests and offline use."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Union

from noderpc.network.transport.base import BaseTransport, Data, TransportClosed

LOGGER = logging.getLogger(__name__)

_EOF = None


class MemoryTransport(BaseTransport):
    """Queue-backed transport standing in for a node.

    Frames the client sends are recorded in ``sent`` and can be awaited with
    :meth:`next_sent`; inbound frames are injected with :meth:`feed`.
    """

    def __init__(self, *, connect_error: Optional[Exception] = None) -> None:
        self._connect_error = connect_error
        self._inbound: asyncio.Queue[Optional[Data]] = asyncio.Queue()
        self._outbound: asyncio.Queue[str] = asyncio.Queue()
        self.sent: list[str] = []
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        if self._connect_error is not None:
            raise self._connect_error
        LOGGER.debug("Memory transport connect()")
        self.connected = True

    async def send(self, data: str) -> None:
        if self.closed:
            raise TransportClosed("memory transport closed")
        self.sent.append(data)
        self._outbound.put_nowait(data)

    async def receive(self) -> Data:
        item = await self._inbound.get()
        if item is _EOF:
            # Keep the marker so later receives also see end of stream.
            self._inbound.put_nowait(_EOF)
            raise TransportClosed("memory transport end of stream")
        return item

    async def close(self) -> None:
        if self.closed:
            return
        LOGGER.debug("Memory transport close()")
        self.closed = True
        self._inbound.put_nowait(_EOF)

    def feed(self, frame: Union[Data, dict[str, Any]]) -> None:
        """Queue an inbound frame; dicts are JSON-encoded."""

        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._inbound.put_nowait(frame)

    def end(self) -> None:
        """Simulate the node closing the stream."""

        self._inbound.put_nowait(_EOF)

    async def next_sent(self, timeout: float = 1.0) -> dict[str, Any]:
        """Wait for the next frame the client wrote and return it decoded."""

        data = await asyncio.wait_for(self._outbound.get(), timeout=timeout)
        return json.loads(data)
