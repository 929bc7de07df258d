from .frames import (
    Frame,
    NotificationParams,
    RpcErrorObject,
    RpcNotification,
    RpcRequest,
    RpcResponse,
    normalize_id,
)
from .header import RawHeader, parse_quantity
from .result import RpcResult

__all__ = [
    "Frame",
    "NotificationParams",
    "RawHeader",
    "RpcErrorObject",
    "RpcNotification",
    "RpcRequest",
    "RpcResponse",
    "RpcResult",
    "normalize_id",
    "parse_quantity",
]
