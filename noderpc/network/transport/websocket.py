"""WebSocket transport implementation."""

from __future__ import annotations

import logging
from typing import Any, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from noderpc.config import ClientSettings
from noderpc.network.transport.base import BaseTransport, Data, TransportClosed, TransportError

LOGGER = logging.getLogger(__name__)


class WebSocketTransport(BaseTransport):
    """WebSocket-based node transport."""

    def __init__(self, url: str, settings: Optional[ClientSettings] = None) -> None:
        self._url = url
        self._settings = settings or ClientSettings()
        self._ws: Optional[Any] = None

    @property
    def url(self) -> str:
        return self._url

    async def connect(self) -> None:
        LOGGER.debug("Connecting to node WebSocket at %s", self._url)
        self._ws = await websockets.connect(
            self._url,
            open_timeout=self._settings.connect_timeout_seconds,
            max_size=self._settings.max_message_bytes,
            ping_interval=self._settings.ping_interval_seconds,
        )

    async def send(self, data: str) -> None:
        if not self._ws:
            raise TransportClosed("WebSocket transport not connected")
        LOGGER.debug("WebSocket send: %s", data)
        try:
            await self._ws.send(data)
        except ConnectionClosed as exc:
            raise TransportClosed(str(exc)) from exc

    async def receive(self) -> Data:
        if not self._ws:
            raise TransportClosed("WebSocket transport not connected")
        try:
            raw = await self._ws.recv()
        except ConnectionClosed as exc:
            raise TransportClosed(str(exc)) from exc
        except OSError as exc:
            raise TransportError(str(exc)) from exc
        LOGGER.debug("WebSocket receive: %s", raw)
        return raw

    async def close(self) -> None:
        if self._ws:
            LOGGER.debug("Closing WebSocket transport")
            ws, self._ws = self._ws, None
            await ws.close()
