"""In-memory stand-in for :class:`NodeClient` used by collaborators' tests."""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from noderpc.errors import ConnectionClosed, NotFound
from noderpc.models.header import RawHeader
from noderpc.models.result import RpcResult
from noderpc.network.subscriptions import Subscription

LOGGER = logging.getLogger(__name__)


@dataclass
class StubNodeClient:
    """Answers calls and queries from fixed tables; unknown keys raise :class:`NotFound`."""

    mock_query: dict[str, dict[str, Any]] = field(default_factory=dict)
    mock_rpc: dict[str, Any] = field(default_factory=dict)
    mock_heads: list[dict[str, Any]] = field(default_factory=list)

    _subscriptions: list[Subscription] = field(default_factory=list, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def closed(self) -> bool:
        return self._closed

    async def call(
        self,
        method: str,
        *params: Any,
        timeout: Optional[float] = None,
        request_id: Optional[Any] = None,
    ) -> RpcResult:
        if self._closed:
            raise ConnectionClosed("client stopped")
        if method not in self.mock_rpc:
            raise NotFound()
        LOGGER.debug("Stub rpc call method=%s params=%s", method, params)
        return RpcResult(value=copy.deepcopy(self.mock_rpc[method]), request_id=str(request_id or method))

    async def call_with_timeout(self, timeout: float, method: str, *params: Any) -> RpcResult:
        return await self.call(method, *params, timeout=timeout)

    async def execute_query(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        if query not in self.mock_query:
            raise NotFound()
        return copy.deepcopy(self.mock_query[query])

    async def subscribe_chain_head(self, queue: Optional[asyncio.Queue[Any]] = None) -> Subscription:
        """Return a subscription pre-loaded with ``mock_heads`` decoded as :class:`RawHeader`."""

        if self._closed:
            raise ConnectionClosed("client stopped")
        channel: asyncio.Queue[Any] = queue if queue is not None else asyncio.Queue()
        subscription = Subscription(
            id=f"stub-{len(self._subscriptions) + 1}",
            method="newHeads",
            channel=channel,
            decoder=RawHeader.model_validate,
        )
        for head in self.mock_heads:
            channel.put_nowait(RawHeader.model_validate(head))
        self._subscriptions.append(subscription)
        return subscription

    async def stop(self) -> None:
        self._closed = True
        for subscription in self._subscriptions:
            subscription.deactivate()
        self._subscriptions.clear()
