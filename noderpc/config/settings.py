"""Client configuration loading and validation."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterable, Literal

import yaml
from pydantic import AnyUrl, Field, PositiveFloat, PositiveInt
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_LOCATIONS: tuple[Path, ...] = (
    Path("/etc/noderpc/client.yaml"),
    Path("/etc/noderpc/client.yml"),
    Path("./config/noderpc.yaml"),
    Path("./config/noderpc.yml"),
)

OverflowPolicy = Literal["block", "drop_new", "drop_oldest"]


class ClientSettings(BaseSettings):
    """Validated settings for the node client."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="NODERPC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Endpoints
    node_ws_url: AnyUrl = Field(
        default="ws://localhost:8546",
        description="Node JSON-RPC WebSocket endpoint.",
    )
    query_url: AnyUrl | None = Field(
        default=None,
        description="Optional GraphQL endpoint used for one-shot queries.",
    )

    # Timeouts
    connect_timeout_seconds: PositiveFloat = Field(
        default=10.0,
        description="Seconds allowed for the WebSocket opening handshake.",
    )
    call_timeout_seconds: PositiveFloat = Field(
        default=1.0,
        description="Default per-call timeout when the caller does not pass one.",
    )
    query_timeout_seconds: PositiveFloat = Field(
        default=10.0,
        description="HTTP timeout applied to query endpoint requests.",
    )

    # Multiplexer behaviour
    subscription_queue_max: PositiveInt = Field(
        default=128,
        description="Buffered notifications per subscription before the overflow policy applies.",
    )
    subscription_overflow: OverflowPolicy = Field(
        default="block",
        description="What the dispatch loop does when a subscriber queue is full.",
    )
    fail_inflight_on_close: bool = Field(
        default=True,
        description="Fail in-flight calls with ConnectionClosed as soon as the connection ends.",
    )
    late_response_memory: PositiveInt = Field(
        default=512,
        description="Number of timed-out request ids remembered to classify late responses.",
    )

    # Node method names
    chain_head_method: str = Field(
        default="eth_subscribe",
        description="RPC method that opens a subscription.",
    )
    chain_head_topic: str = Field(
        default="newHeads",
        description="Subscription topic for new chain-head headers.",
    )
    unsubscribe_method: str = Field(
        default="eth_unsubscribe",
        description="RPC method that cancels a subscription on the node.",
    )

    # Socket tuning
    max_message_bytes: PositiveInt | None = Field(
        default=16 * 1024 * 1024,
        description="Largest inbound WebSocket message accepted; None disables the limit.",
    )
    ping_interval_seconds: PositiveFloat | None = Field(
        default=20.0,
        description="Keepalive ping interval handled by the WebSocket library.",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level for the CLI.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.upper()
        return value

    config_path: Path | None = Field(
        default=None,
        description="Resolved path to the on-disk config that seeded the settings.",
        exclude=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[ClientSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            cls._yaml_settings_source,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @staticmethod
    def _yaml_settings_source(settings_cls: type[ClientSettings] | None = None) -> Dict[str, Any]:
        for path in ClientSettings._resolve_candidate_paths():
            data = ClientSettings._load_file(path)
            if data is not None:
                data.setdefault("config_path", path)
                return data
        return {}

    @staticmethod
    def _resolve_candidate_paths() -> Iterable[Path]:
        explicit = os.getenv("NODERPC_CONFIG_FILE")
        if explicit:
            yield Path(explicit).expanduser()
        yield from DEFAULT_CONFIG_LOCATIONS

    @staticmethod
    def _load_file(path: Path) -> Dict[str, Any] | None:
        if not path.is_file():
            return None
        suffix = path.suffix.lower()
        try:
            with path.open("r", encoding="utf-8") as handle:
                if suffix in {".yaml", ".yml"}:
                    raw = yaml.safe_load(handle)
                elif suffix == ".json":
                    raw = json.load(handle)
                else:
                    return None
        except OSError as exc:
            raise RuntimeError(f"Failed to read client config file {path}") from exc
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ValueError(f"Invalid client config file {path}") from exc

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ValueError(f"Client config file {path} must contain a mapping at top level.")
        return raw


@lru_cache()
def get_settings() -> ClientSettings:
    """Return memoized client settings."""

    return ClientSettings()
