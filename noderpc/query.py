"""HTTP client for the node's GraphQL query endpoint."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from requests import Response

from noderpc.config import ClientSettings
from noderpc.errors import QueryError, QueryNotConfigured

LOGGER = logging.getLogger(__name__)


def current_block_query() -> str:
    return "query { block { number } }"


class QueryClient:
    """One-shot GraphQL queries; no subscription semantics."""

    def __init__(self, *, url: str, timeout_seconds: float = 10.0) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> QueryClient:
        if not settings.query_url:
            raise QueryNotConfigured("Query endpoint URL is not configured.")
        return cls(url=str(settings.query_url), timeout_seconds=settings.query_timeout_seconds)

    @property
    def url(self) -> str:
        return self._url

    def execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Run *query* and return its ``data`` member."""

        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables
        response = self._request(body)
        try:
            payload = response.json()
        except ValueError as exc:
            raise QueryError("Query endpoint returned invalid JSON.") from exc
        if not isinstance(payload, dict):
            raise QueryError("Query endpoint returned a non-object response.")
        errors = payload.get("errors")
        if errors:
            messages = [str(item.get("message", item)) if isinstance(item, dict) else str(item) for item in errors]
            raise QueryError("; ".join(messages))
        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    def _request(self, body: dict[str, Any]) -> Response:
        LOGGER.debug("Query request to %s: %s", self._url, body.get("query"))
        try:
            response = requests.post(
                self._url,
                json=body,
                headers={"Accept": "application/json"},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise QueryError(str(exc)) from exc
        if response.status_code >= 400:
            raise QueryError(f"Query request failed with status {response.status_code}.")
        return response


__all__ = ["QueryClient", "current_block_query"]
