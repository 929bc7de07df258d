"""Multiplexed JSON-RPC client for blockchain nodes.

Calls and subscriptions share one WebSocket connection; a single dispatch
loop routes responses to their callers by request id and notifications to
their subscribers by subscription id.
"""

from noderpc.config import ClientSettings, get_settings
from noderpc.errors import (
    CallTimeout,
    ConnectError,
    ConnectionClosed,
    DecodeError,
    DuplicateIDError,
    NodeRPCError,
    NotFound,
    QueryError,
    QueryNotConfigured,
    RemoteError,
)
from noderpc.models import RawHeader, RpcResult
from noderpc.network import MemoryTransport, NodeClient, Subscription, WebSocketTransport
from noderpc.query import QueryClient
from noderpc.stub import StubNodeClient

__all__ = [
    "CallTimeout",
    "ClientSettings",
    "ConnectError",
    "ConnectionClosed",
    "DecodeError",
    "DuplicateIDError",
    "MemoryTransport",
    "NodeClient",
    "NodeRPCError",
    "NotFound",
    "QueryClient",
    "QueryError",
    "QueryNotConfigured",
    "RawHeader",
    "RemoteError",
    "RpcResult",
    "StubNodeClient",
    "Subscription",
    "WebSocketTransport",
    "get_settings",
]
