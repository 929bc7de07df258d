"""Tagged call result: raw JSON bytes or a caller-chosen typed value."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from noderpc.errors import DecodeError

T = TypeVar("T")


@dataclass(frozen=True)
class RpcResult:
    """Result member of a successful response.

    Nothing is coerced on the caller's behalf. ``value`` is the JSON value as
    decoded off the wire, ``raw`` its JSON encoding, and :meth:`decode` validates
    it against a type the caller picks.
    """

    value: Any
    request_id: str = ""

    @property
    def raw(self) -> bytes:
        return json.dumps(self.value, separators=(",", ":")).encode("utf-8")

    def decode(self, type_: Type[T]) -> T:
        try:
            return TypeAdapter(type_).validate_python(self.value)
        except ValidationError as exc:
            raise DecodeError(f"result of request {self.request_id} is not a valid {type_!r}") from exc
