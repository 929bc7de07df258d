from .base import BaseTransport, TransportClosed, TransportError
from .memory import MemoryTransport
from .websocket import WebSocketTransport

__all__ = [
    "BaseTransport",
    "MemoryTransport",
    "TransportClosed",
    "TransportError",
    "WebSocketTransport",
]
