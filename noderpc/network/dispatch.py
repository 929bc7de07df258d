"""The single reader that routes inbound frames to the call and subscription tables."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Callable
from typing import Optional, Union

from noderpc.errors import DecodeError
from noderpc.models.frames import RpcResponse
from noderpc.network.calls import CallRegistry
from noderpc.network.codec import decode_frame
from noderpc.network.subscriptions import SubscriptionRegistry
from noderpc.network.transport.base import BaseTransport

LOGGER = logging.getLogger(__name__)


class LoopState(enum.Enum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


class DispatchLoop:
    """Reads the socket until shutdown or a terminal read error.

    A frame that fails to decode is logged and dropped; it never stops the
    loop. When the transport ends on its own, ``on_terminated`` is invoked with
    the error so the owner can close the session.
    """

    def __init__(
        self,
        transport: BaseTransport,
        calls: CallRegistry,
        subscriptions: SubscriptionRegistry,
        *,
        on_terminated: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._transport = transport
        self._calls = calls
        self._subscriptions = subscriptions
        self._on_terminated = on_terminated
        self._task: Optional[asyncio.Task[None]] = None
        self._state = LoopState.STOPPED
        self.frames_received = 0
        self.decode_errors = 0

    @property
    def state(self) -> LoopState:
        return self._state

    def start(self) -> None:
        if self._task is not None:
            return
        self._state = LoopState.RUNNING
        self._task = asyncio.create_task(self._run(), name="noderpc-dispatch")

    async def stop(self) -> None:
        """Cancel the loop and wait until it has fully exited."""

        task = self._task
        if task is None:
            self._state = LoopState.STOPPED
            return
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._state = LoopState.STOPPED

    async def wait_stopped(self) -> None:
        task = self._task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await asyncio.shield(task)

    async def _run(self) -> None:
        reason: Optional[Exception] = None
        try:
            while True:
                try:
                    raw = await self._transport.receive()
                except Exception as exc:  # noqa: BLE001
                    reason = exc
                    break
                await self._dispatch(raw)
        except asyncio.CancelledError:
            LOGGER.debug("Dispatch loop cancelled")
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Dispatch loop crashed")
            reason = exc
        finally:
            self._state = LoopState.STOPPED

        LOGGER.info("Dispatch loop stopped: %s", reason)
        if self._on_terminated is not None:
            try:
                self._on_terminated(reason)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Dispatch termination callback failed")

    async def _dispatch(self, raw: Union[str, bytes]) -> None:
        self.frames_received += 1
        try:
            frame = decode_frame(raw)
        except DecodeError as exc:
            self.decode_errors += 1
            LOGGER.warning("Dropping undecodable frame: %s", exc)
            return
        if isinstance(frame, RpcResponse):
            self._calls.deliver(frame.id, frame)
            return
        await self._subscriptions.publish(frame.params.subscription, frame.params.result)
