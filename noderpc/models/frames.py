"""JSON-RPC 2.0 frame models exchanged with the node."""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_id(value: Any) -> Any:
    """Map numeric JSON-RPC ids onto their string form so both spellings correlate."""

    # bool is an int subclass but never a valid id; leave it for validation to reject.
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return value


class RpcRequest(BaseModel):
    """Outgoing call frame."""

    jsonrpc: str = "2.0"
    id: str
    method: str
    params: List[Any] = Field(default_factory=list)


class RpcErrorObject(BaseModel):
    """Error member of a response frame."""

    code: int
    message: str
    data: Optional[Any] = None


class RpcResponse(BaseModel):
    """Response correlated to a call by ``id``."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Optional[str] = None
    id: str
    result: Optional[Any] = None
    error: Optional[RpcErrorObject] = None

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> Any:
        return normalize_id(value)


class NotificationParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subscription: str
    result: Optional[Any] = None

    @field_validator("subscription", mode="before")
    @classmethod
    def _normalize_subscription(cls, value: Any) -> Any:
        return normalize_id(value)


class RpcNotification(BaseModel):
    """Push frame routed to a subscription by ``params.subscription``."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Optional[str] = None
    method: str
    params: NotificationParams


Frame = Union[RpcResponse, RpcNotification]

__all__ = [
    "Frame",
    "NotificationParams",
    "RpcErrorObject",
    "RpcNotification",
    "RpcRequest",
    "RpcResponse",
    "normalize_id",
]
