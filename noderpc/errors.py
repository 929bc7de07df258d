"""Exceptions raised by the node client."""

from __future__ import annotations

from typing import Any, Optional


class NodeRPCError(Exception):
    """Base class for every error raised by :mod:`noderpc`."""


class ConnectError(NodeRPCError):
    """Raised when the initial socket handshake or query probe fails."""


class DuplicateIDError(NodeRPCError):
    """Raised when an id is registered while an entry with the same id is live."""

    def __init__(self, request_id: str) -> None:
        super().__init__(f"id {request_id!r} is already in flight")
        self.request_id = request_id


class CallTimeout(NodeRPCError, TimeoutError):
    """Raised when no response arrives within the caller's timeout."""

    def __init__(self, method: str, timeout: float) -> None:
        super().__init__(f"rpc call {method} timed out after {timeout:.3f}s")
        self.method = method
        self.timeout = timeout


class RemoteError(NodeRPCError):
    """The node answered with an explicit JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self) -> str:
        return f"{self.message} (code {self.code})"


class DecodeError(NodeRPCError, ValueError):
    """A frame or result could not be decoded."""


class ConnectionClosed(NodeRPCError):
    """The connection has ended; no further calls can be made on it."""


class QueryError(NodeRPCError):
    """Raised for failures on the secondary query endpoint."""


class QueryNotConfigured(QueryError):
    """Raised when a query is attempted without a query endpoint."""


class NotFound(NodeRPCError):
    """Raised by the stub client for queries or methods it has no answer for."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


__all__ = [
    "NodeRPCError",
    "ConnectError",
    "DuplicateIDError",
    "CallTimeout",
    "RemoteError",
    "DecodeError",
    "ConnectionClosed",
    "QueryError",
    "QueryNotConfigured",
    "NotFound",
]
