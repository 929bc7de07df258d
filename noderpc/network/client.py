"""Client facade multiplexing calls and subscriptions over one node connection."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Optional

from noderpc.config import ClientSettings, get_settings
from noderpc.errors import (
    CallTimeout,
    ConnectError,
    ConnectionClosed,
    DecodeError,
    QueryError,
    QueryNotConfigured,
    RemoteError,
)
from noderpc.models.frames import RpcResponse, normalize_id
from noderpc.models.header import RawHeader
from noderpc.models.result import RpcResult
from noderpc.network.calls import CallRegistry, Delivery, ResponseHook
from noderpc.network.codec import encode_request
from noderpc.network.dispatch import DispatchLoop
from noderpc.network.subscriptions import Decoder, Subscription, SubscriptionRegistry
from noderpc.network.transport.base import BaseTransport
from noderpc.network.transport.websocket import WebSocketTransport
from noderpc.network.writer import ConnectionWriter
from noderpc.query import QueryClient, current_block_query

LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[str, ClientSettings], BaseTransport]


def _websocket_factory(url: str, settings: ClientSettings) -> BaseTransport:
    return WebSocketTransport(url, settings)


@dataclass
class NodeClient:
    """Issues calls and subscriptions to a node over a single connection.

    Use :meth:`connect` to build a running client. The transport passed here
    must already be connected; :meth:`start` launches the dispatch loop.
    """

    transport: BaseTransport
    settings: ClientSettings = field(default_factory=get_settings)
    query_client: Optional[QueryClient] = None

    _calls: CallRegistry = field(init=False, repr=False)
    _subscriptions: SubscriptionRegistry = field(init=False, repr=False)
    _writer: ConnectionWriter = field(init=False, repr=False)
    _dispatch: DispatchLoop = field(init=False, repr=False)
    _id_counter: Iterator[int] = field(default_factory=lambda: count(1), init=False, repr=False)
    _stop_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)
    _stopped: bool = field(default=False, init=False, repr=False)
    _close_reason: Optional[str] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._calls = CallRegistry(late_memory=self.settings.late_response_memory)
        self._subscriptions = SubscriptionRegistry(
            queue_max=self.settings.subscription_queue_max,
            overflow=self.settings.subscription_overflow,
        )
        self._writer = ConnectionWriter(self.transport)
        self._dispatch = DispatchLoop(
            self.transport,
            self._calls,
            self._subscriptions,
            on_terminated=self._on_dispatch_terminated,
        )

    @classmethod
    async def connect(
        cls,
        url: Optional[str] = None,
        *,
        query_url: Optional[str] = None,
        settings: Optional[ClientSettings] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> NodeClient:
        """Open the node connection, optionally probe the query endpoint, and start dispatching."""

        settings = settings or get_settings()
        url = url or str(settings.node_ws_url)
        factory = transport_factory or _websocket_factory
        transport = factory(url, settings)

        LOGGER.debug("Connecting to node endpoint %s", url)
        try:
            await transport.connect()
        except Exception as exc:  # noqa: BLE001
            raise ConnectError(f"connect node endpoint {url} failed: {exc}") from exc
        LOGGER.debug("Connected to node endpoint %s", url)

        query_client = None
        query_url = query_url or (str(settings.query_url) if settings.query_url else None)
        if query_url:
            query_client = QueryClient(url=query_url, timeout_seconds=settings.query_timeout_seconds)

        client = cls(transport=transport, settings=settings, query_client=query_client)
        if query_client is not None:
            try:
                await client._probe_query()
            except ConnectError:
                await transport.close()
                raise
        client.start()
        return client

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        self._dispatch.start()

    async def call(
        self,
        method: str,
        *params: Any,
        timeout: Optional[float] = None,
        request_id: Optional[Any] = None,
    ) -> RpcResult:
        """Send one request and wait up to *timeout* seconds for its response."""

        return await self._call(method, params, timeout=timeout, request_id=request_id)

    async def call_with_timeout(self, timeout: float, method: str, *params: Any) -> RpcResult:
        return await self._call(method, params, timeout=timeout)

    async def subscribe(
        self,
        method: str,
        *params: Any,
        queue: Optional[asyncio.Queue[Any]] = None,
        decoder: Optional[Decoder] = None,
        timeout: Optional[float] = None,
    ) -> Subscription:
        """Issue a subscribe call and register the returned subscription id.

        The subscription is registered from the dispatch loop the moment the
        response is routed, so a notification that immediately follows the
        response on the wire is never lost.
        """

        def _register(response: RpcResponse) -> None:
            if response.error is not None:
                return
            sub_id = self._subscription_id(method, response.result)
            subscription = self._subscriptions.register(sub_id, method=method, channel=queue, decoder=decoder)
            subscription._on_unsubscribe = self.unsubscribe

        result = await self._call(method, params, timeout=timeout, on_response=_register)
        subscription = self._subscriptions.get(self._subscription_id(method, result.value))
        if subscription is None:
            raise ConnectionClosed(self._close_reason or "subscription ended before it was returned")
        LOGGER.debug("Subscribed id=%s via %s", subscription.id, method)
        return subscription

    async def subscribe_chain_head(self, queue: Optional[asyncio.Queue[Any]] = None) -> Subscription:
        """Subscribe to new chain-head headers, delivered as :class:`RawHeader`."""

        return await self.subscribe(
            self.settings.chain_head_method,
            self.settings.chain_head_topic,
            queue=queue,
            decoder=RawHeader.model_validate,
        )

    async def unsubscribe(self, subscription: Subscription) -> bool:
        removed = self._subscriptions.unregister(subscription.id)
        subscription.deactivate()
        if removed is None or self._closed:
            return False
        result = await self.call(self.settings.unsubscribe_method, subscription.id)
        return bool(result.value)

    async def execute_query(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        if self.query_client is None:
            raise QueryNotConfigured("Query endpoint URL is not configured.")
        return await asyncio.to_thread(self.query_client.execute, query, variables)

    async def stop(self) -> None:
        """Stop dispatching and close the socket; safe to call more than once.

        Returns only after the dispatch loop has exited, so no registry is
        touched by it afterwards.
        """

        async with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
            self._mark_closed("client stopped")
            await self._dispatch.stop()
            try:
                await self.transport.close()
            except Exception:  # noqa: BLE001
                LOGGER.debug("Suppress transport close error", exc_info=True)
            LOGGER.info("Node client stopped")

    async def __aenter__(self) -> NodeClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    def next_request_id(self) -> str:
        """Next counter id not already taken by a caller-supplied id in flight."""

        while True:
            request_id = str(next(self._id_counter))
            if request_id not in self._calls:
                return request_id

    async def _call(
        self,
        method: str,
        params: tuple[Any, ...],
        *,
        timeout: Optional[float] = None,
        request_id: Optional[Any] = None,
        on_response: Optional[ResponseHook] = None,
    ) -> RpcResult:
        if self._closed:
            raise ConnectionClosed(self._close_reason or "connection closed")
        timeout = self.settings.call_timeout_seconds if timeout is None else float(timeout)
        request_id = self.next_request_id() if request_id is None else str(normalize_id(request_id))
        frame = encode_request(request_id, method, params)

        loop = asyncio.get_running_loop()
        channel = self._calls.register(
            request_id,
            method=method,
            deadline=loop.time() + timeout,
            on_response=on_response,
        )
        try:
            await self._writer.send(frame)
        except BaseException:
            self._calls.cancel(request_id)
            raise

        try:
            delivery = await asyncio.wait_for(channel.get(), timeout=timeout)
        except asyncio.TimeoutError:
            if self._calls.cancel(request_id):
                raise CallTimeout(method, timeout) from None
            # Lost the race to the dispatch loop: the slot already holds the outcome.
            delivery = channel.get_nowait()
        except asyncio.CancelledError:
            self._calls.cancel(request_id)
            raise
        return self._unwrap(method, delivery)

    @staticmethod
    def _unwrap(method: str, delivery: Delivery) -> RpcResult:
        if isinstance(delivery, ConnectionClosed):
            raise ConnectionClosed(str(delivery)) from delivery
        if isinstance(delivery, BaseException):
            raise delivery
        if delivery.error is not None:
            error = delivery.error
            raise RemoteError(error.code, error.message, error.data)
        LOGGER.debug("rpc call response id=%s method=%s", delivery.id, method)
        return RpcResult(value=delivery.result, request_id=delivery.id)

    @staticmethod
    def _subscription_id(method: str, value: Any) -> str:
        sub_id = normalize_id(value)
        if not isinstance(sub_id, str) or not sub_id:
            raise DecodeError(f"{method} returned no subscription id: {value!r}")
        return sub_id

    async def _probe_query(self) -> None:
        LOGGER.debug("Connecting to query endpoint %s", self.query_client.url if self.query_client else None)
        try:
            data = await self.execute_query(current_block_query())
        except QueryError as exc:
            raise ConnectError(f"call query endpoint failed: {exc}") from exc
        if not data:
            raise ConnectError("call query endpoint failed: empty response")
        LOGGER.debug("Connected to query endpoint")

    def _on_dispatch_terminated(self, exc: Exception) -> None:
        self._mark_closed(f"connection lost: {exc}")

    def _mark_closed(self, reason: str) -> None:
        if self._closed:
            return
        self._closed = True
        self._close_reason = reason
        self._writer.close()
        failed = self._calls.close(
            ConnectionClosed(reason),
            fail_pending=self.settings.fail_inflight_on_close,
        )
        self._subscriptions.close()
        LOGGER.info("Node connection closed (%s); failed %s in-flight calls", reason, failed)
