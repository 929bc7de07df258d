"""Encode outgoing calls and classify inbound frames."""

from __future__ import annotations

import json
from typing import Any, Sequence, Union

from pydantic import ValidationError

from noderpc.errors import DecodeError
from noderpc.models.frames import Frame, RpcNotification, RpcRequest, RpcResponse


def encode_request(request_id: str, method: str, params: Sequence[Any] = ()) -> str:
    request = RpcRequest(id=request_id, method=method, params=list(params))
    return request.model_dump_json()


def decode_frame(raw: Union[str, bytes]) -> Frame:
    """Decode one inbound frame into a response or a notification.

    Anything else, including batches and server-initiated requests, is a
    :class:`DecodeError`.
    """

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("frame is not valid UTF-8") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"frame is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise DecodeError(f"frame must be a JSON object, got {type(data).__name__}")

    try:
        if "id" in data and data["id"] is not None:
            if "method" in data:
                raise DecodeError(f"unexpected request from node: {data.get('method')!r}")
            if "result" not in data and "error" not in data:
                raise DecodeError(f"response {data['id']!r} has neither result nor error")
            return RpcResponse.model_validate(data)
        if "method" in data and isinstance(data.get("params"), dict):
            return RpcNotification.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"malformed frame: {exc}") from exc
    raise DecodeError("frame is neither a response nor a subscription notification")


__all__ = ["decode_frame", "encode_request"]
