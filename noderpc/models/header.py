"""Chain-head header model and hex quantity parsing."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_quantity(value: Any) -> Any:
    """Decode a ``0x``-prefixed hex quantity; integers pass through."""

    if isinstance(value, str):
        text = value.strip()
        if text[:2].lower() != "0x":
            raise ValueError(f"hex quantity must start with 0x: {value!r}")
        try:
            return int(text, 16)
        except ValueError as exc:
            raise ValueError(f"invalid hex quantity: {value!r}") from exc
    return value


class RawHeader(BaseModel):
    """Chain-head header as pushed by a ``newHeads`` subscription."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    number: int
    hash: Optional[str] = None
    parent_hash: Optional[str] = Field(default=None, alias="parentHash")
    timestamp: Optional[int] = None

    @field_validator("number", "timestamp", mode="before")
    @classmethod
    def _parse_quantity(cls, value: Any) -> Any:
        if value is None:
            return value
        return parse_quantity(value)
