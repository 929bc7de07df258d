"""Network stack (transport, registries, dispatch, client) for the node connection."""

from noderpc.network.calls import CallRegistry, PendingCall
from noderpc.network.client import NodeClient
from noderpc.network.codec import decode_frame, encode_request
from noderpc.network.dispatch import DispatchLoop, LoopState
from noderpc.network.subscriptions import Subscription, SubscriptionRegistry
from noderpc.network.transport.base import BaseTransport, TransportClosed, TransportError
from noderpc.network.transport.memory import MemoryTransport
from noderpc.network.transport.websocket import WebSocketTransport
from noderpc.network.writer import ConnectionWriter

__all__ = [
    "BaseTransport",
    "CallRegistry",
    "ConnectionWriter",
    "DispatchLoop",
    "LoopState",
    "MemoryTransport",
    "NodeClient",
    "PendingCall",
    "Subscription",
    "SubscriptionRegistry",
    "TransportClosed",
    "TransportError",
    "WebSocketTransport",
    "decode_frame",
    "encode_request",
]
