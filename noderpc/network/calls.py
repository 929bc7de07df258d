"""In-flight call table keyed by request id."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from noderpc.errors import ConnectionClosed, DuplicateIDError
from noderpc.models.frames import RpcResponse

LOGGER = logging.getLogger(__name__)

Delivery = Union[RpcResponse, BaseException]
ResponseHook = Callable[[RpcResponse], None]


@dataclass
class PendingCall:
    request_id: str
    method: str = ""
    deadline: Optional[float] = None
    on_response: Optional[ResponseHook] = None
    channel: asyncio.Queue[Delivery] = field(default_factory=lambda: asyncio.Queue(maxsize=1))


class CallRegistry:
    """Maps in-flight request ids to their single-slot delivery channels.

    An entry is delivered to or removed at most once. None of the methods
    suspend, so on the event loop each one runs to completion before any other
    can observe the table; a ``deliver`` racing a ``cancel`` for the same id
    therefore resolves to exactly one winner and the other is a no-op.
    """

    def __init__(self, *, late_memory: int = 512) -> None:
        self._pending: Dict[str, PendingCall] = {}
        self._abandoned: OrderedDict[str, None] = OrderedDict()
        self._late_memory = late_memory
        self._closed: Optional[BaseException] = None

    def __contains__(self, request_id: str) -> bool:
        return request_id in self._pending

    def pending_count(self) -> int:
        return len(self._pending)

    def register(
        self,
        request_id: str,
        *,
        method: str = "",
        deadline: Optional[float] = None,
        on_response: Optional[ResponseHook] = None,
    ) -> asyncio.Queue[Delivery]:
        if self._closed is not None:
            raise ConnectionClosed(str(self._closed))
        if request_id in self._pending:
            raise DuplicateIDError(request_id)
        pending = PendingCall(
            request_id=request_id,
            method=method,
            deadline=deadline,
            on_response=on_response,
        )
        self._pending[request_id] = pending
        self._abandoned.pop(request_id, None)
        return pending.channel

    def deliver(self, request_id: str, response: RpcResponse) -> bool:
        pending = self._pending.pop(request_id, None)
        if pending is None:
            if request_id in self._abandoned:
                del self._abandoned[request_id]
                LOGGER.debug("Ignored late response for abandoned call id=%s", request_id)
            else:
                LOGGER.warning("Received response with no pending call id=%s", request_id)
            return False
        delivery: Delivery = response
        if pending.on_response is not None:
            # Runs before the next frame is read, e.g. to register a subscription id.
            try:
                pending.on_response(response)
            except Exception as exc:  # noqa: BLE001
                delivery = exc
        # The entry left the table above, so the single slot is still empty.
        pending.channel.put_nowait(delivery)
        return True

    def cancel(self, request_id: str) -> bool:
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return False
        self._remember_abandoned(request_id)
        return True

    def close(self, exc: BaseException, *, fail_pending: bool = True) -> int:
        """Refuse further registrations with *exc*; optionally fail current waiters with it."""

        self._closed = exc
        if not fail_pending:
            return 0
        pending = list(self._pending.values())
        self._pending.clear()
        if pending:
            LOGGER.debug("Failing %s pending calls: %s", len(pending), exc)
        for entry in pending:
            entry.channel.put_nowait(exc)
        return len(pending)

    def _remember_abandoned(self, request_id: str) -> None:
        self._abandoned[request_id] = None
        self._abandoned.move_to_end(request_id)
        while len(self._abandoned) > self._late_memory:
            self._abandoned.popitem(last=False)
