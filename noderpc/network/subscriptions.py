"""Subscription table and the handle callers consume notifications from."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from noderpc.config.settings import OverflowPolicy
from noderpc.errors import ConnectionClosed, DuplicateIDError

LOGGER = logging.getLogger(__name__)

Decoder = Callable[[Any], Any]


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``subscribe``.

    Notifications arrive on ``channel`` in the order the dispatch loop read
    them. Iterating the handle with ``async for`` yields them and stops once the
    subscription is inactive and the buffered items are drained.
    """

    id: str
    method: str
    channel: asyncio.Queue[Any]
    decoder: Optional[Decoder] = None
    active: bool = True
    drops: int = 0
    _ended: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)
    _on_unsubscribe: Optional[Callable[[Subscription], Awaitable[bool]]] = field(
        default=None, init=False, repr=False
    )

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Any:
        while True:
            if not self.channel.empty():
                return self.channel.get_nowait()
            if not self.active:
                raise StopAsyncIteration
            getter = asyncio.ensure_future(self.channel.get())
            ender = asyncio.ensure_future(self._ended.wait())
            try:
                done, _ = await asyncio.wait({getter, ender}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (getter, ender):
                    if not task.done():
                        task.cancel()
            if getter in done:
                return getter.result()

    async def unsubscribe(self) -> bool:
        if self._on_unsubscribe is None:
            self.deactivate()
            return False
        return await self._on_unsubscribe(self)

    def deactivate(self) -> None:
        self.active = False
        self._ended.set()


class SubscriptionRegistry:
    """Maps subscription ids to their delivery channels.

    Lookups and mutations never suspend; only :meth:`publish` may wait, and only
    under the ``block`` overflow policy when the subscriber is behind.
    """

    def __init__(self, *, queue_max: int = 128, overflow: OverflowPolicy = "block") -> None:
        if overflow not in {"block", "drop_new", "drop_oldest"}:
            overflow = "block"
        self._queue_max = max(0, int(queue_max))
        self._overflow: OverflowPolicy = overflow
        self._subscriptions: Dict[str, Subscription] = {}
        self._closed = False

    def __contains__(self, sub_id: str) -> bool:
        return sub_id in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    def get(self, sub_id: str) -> Optional[Subscription]:
        return self._subscriptions.get(sub_id)

    def register(
        self,
        sub_id: str,
        *,
        method: str = "",
        channel: Optional[asyncio.Queue[Any]] = None,
        decoder: Optional[Decoder] = None,
    ) -> Subscription:
        if self._closed:
            raise ConnectionClosed("connection closed")
        if sub_id in self._subscriptions:
            raise DuplicateIDError(sub_id)
        if channel is None:
            channel = asyncio.Queue(maxsize=self._queue_max)
        subscription = Subscription(id=sub_id, method=method, channel=channel, decoder=decoder)
        self._subscriptions[sub_id] = subscription
        LOGGER.debug("Registered subscription id=%s method=%s", sub_id, method)
        return subscription

    def unregister(self, sub_id: str) -> Optional[Subscription]:
        subscription = self._subscriptions.pop(sub_id, None)
        if subscription is not None:
            subscription.deactivate()
            LOGGER.debug("Unregistered subscription id=%s", sub_id)
        return subscription

    async def publish(self, sub_id: str, payload: Any) -> bool:
        subscription = self._subscriptions.get(sub_id)
        if subscription is None:
            LOGGER.debug("Dropping notification for unknown subscription id=%s", sub_id)
            return False
        if subscription.decoder is not None:
            try:
                payload = subscription.decoder(payload)
            except Exception as exc:  # noqa: BLE001
                LOGGER.warning("Dropping undecodable notification for subscription id=%s: %r", sub_id, exc)
                return False
        return await self._enqueue(subscription, payload)

    def close(self) -> None:
        self._closed = True
        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.deactivate()

    async def _enqueue(self, subscription: Subscription, payload: Any) -> bool:
        channel = subscription.channel
        if not channel.full() or self._overflow == "block":
            return await self._put_until_ended(subscription, payload)
        if self._overflow == "drop_new":
            subscription.drops += 1
            LOGGER.warning("Subscription queue full; dropping notification id=%s", subscription.id)
            return False
        try:
            channel.get_nowait()
        except asyncio.QueueEmpty:
            pass
        else:
            subscription.drops += 1
            LOGGER.warning("Subscription queue full; dropping oldest notification id=%s", subscription.id)
        channel.put_nowait(payload)
        return True

    async def _put_until_ended(self, subscription: Subscription, payload: Any) -> bool:
        """Wait for room in the queue unless the subscription ends first."""

        channel = subscription.channel
        if not subscription.active:
            return False
        if not channel.full():
            channel.put_nowait(payload)
            return True
        putter = asyncio.ensure_future(channel.put(payload))
        ender = asyncio.ensure_future(subscription._ended.wait())
        try:
            await asyncio.wait({putter, ender}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (putter, ender):
                if not task.done():
                    task.cancel()
        if putter.done() and not putter.cancelled():
            return True
        LOGGER.debug("Subscription id=%s ended while blocked; dropping notification", subscription.id)
        return False
