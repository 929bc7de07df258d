"""Serialises outgoing frames onto the shared socket."""

from __future__ import annotations

import asyncio
import logging

from noderpc.errors import ConnectionClosed
from noderpc.network.transport.base import BaseTransport, TransportError

LOGGER = logging.getLogger(__name__)


class ConnectionWriter:
    """Single-writer discipline for a transport that is unsafe for concurrent sends."""

    def __init__(self, transport: BaseTransport) -> None:
        self._transport = transport
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, frame: str) -> None:
        async with self._lock:
            if self._closed:
                raise ConnectionClosed("connection closed")
            try:
                await self._transport.send(frame)
            except TransportError as exc:
                LOGGER.debug("Transport send failed: %s", exc)
                raise ConnectionClosed(f"send failed: {exc}") from exc

    def close(self) -> None:
        self._closed = True
