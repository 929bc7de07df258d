"""Transport abstractions for the node connection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Union

Data = Union[str, bytes]


class TransportError(Exception):
    """Base class for transport-layer failures."""


class TransportClosed(TransportError):
    """The peer closed the stream or the transport was closed locally."""


class BaseTransport(ABC):
    """Message-oriented duplex socket used by the client.

    Framing, TLS and ping/pong belong to the implementation; callers only see
    whole text frames. ``send`` is not required to be safe for concurrent use.
    """

    @abstractmethod
    async def connect(self) -> None:
        ...

    @abstractmethod
    async def send(self, data: str) -> None:
        ...

    @abstractmethod
    async def receive(self) -> Data:
        """Return the next inbound frame; raise :class:`TransportClosed` at end of stream."""

    @abstractmethod
    async def close(self) -> None:
        ...
