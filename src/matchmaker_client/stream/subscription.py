"""Subscription manager - one event stream connection, many typed handlers.

All dispatch happens on a single asyncio task: messages are decoded and
handed to handlers strictly in arrival order, and a handler (or its awaited
coroutine) finishes before the next message is looked at.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import json
import logging
from collections import deque
from enum import Enum
from typing import Any, Awaitable, Callable, Union

from matchmaker_client.codec.events import decode_event, resolve_kind
from matchmaker_client.errors import MatchmakerError, StreamConnectionError, StreamDecodeError
from matchmaker_client.interfaces.transport import StreamTransport
from matchmaker_client.models.events import PendingEvent, SseMessage, StreamEvent

log = logging.getLogger(__name__)

EventHandler = Callable[[PendingEvent], Union[Awaitable[None], None]]
ErrorHook = Callable[[MatchmakerError], None]


class StreamState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


class Subscription:
    """Handle returned by SubscriptionManager.subscribe.

    Pass it back to ``unsubscribe`` (or call ``cancel``) to stop delivery.
    Cancelling twice is harmless.
    """

    def __init__(
        self,
        manager: SubscriptionManager,
        kind: StreamEvent,
        handler: EventHandler,
    ) -> None:
        self._manager = manager
        self.kind = kind
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def cancel(self) -> bool:
        return await self._manager.unsubscribe(self)

    def __repr__(self) -> str:
        state = "active" if self._active else "cancelled"
        return f"<Subscription {self.kind.value} {state}>"


class _SeenIds:
    """Bounded memory of delivered SSE message ids."""

    def __init__(self, size: int) -> None:
        self._order: deque[str] = deque()
        self._ids: set[str] = set()
        self._size = size

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._ids

    def add(self, event_id: str) -> None:
        self._order.append(event_id)
        self._ids.add(event_id)
        while len(self._order) > self._size:
            self._ids.discard(self._order.popleft())


class SubscriptionManager:
    """Owns the event stream connection and dispatches decoded events.

    State goes DISCONNECTED -> CONNECTING -> STREAMING, then RECONNECTING
    while the connection is being re-established, and CLOSED after close()
    or when reconnect attempts run out. Events sent while disconnected are
    lost; nothing is replayed.
    """

    def __init__(
        self,
        transport: StreamTransport,
        url: str,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        max_reconnect_attempts: int | None = None,
        on_decode_error: ErrorHook | None = None,
        on_connection_error: ErrorHook | None = None,
        dedupe_window: int = 1024,
    ) -> None:
        self._transport = transport
        self._url = url
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._max_reconnect_attempts = max_reconnect_attempts
        self._on_decode_error = on_decode_error
        self._on_connection_error = on_connection_error

        self._handlers: dict[StreamEvent, list[Subscription]] = {k: [] for k in StreamEvent}
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._state = StreamState.DISCONNECTED
        self._closed = False
        self._seen = _SeenIds(dedupe_window)
        self._last_event_id: str | None = None
        self._attempts = 0
        self._delay = reconnect_delay

        self.decode_errors = 0
        self.reconnects = 0

    @property
    def state(self) -> StreamState:
        """STREAMING once the server has accepted the connection, even before any event."""
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def handler_count(self, kind: StreamEvent | None = None) -> int:
        if kind is not None:
            return len(self._handlers[StreamEvent(kind)])
        return sum(len(subs) for subs in self._handlers.values())

    # ── Registration ──────────────────────────────────────

    async def subscribe(self, kind: StreamEvent | str, handler: EventHandler) -> Subscription:
        """Register ``handler`` for events of ``kind`` and make sure the stream is open.

        Handlers of the same kind run in registration order. A handler may be
        a plain function or a coroutine function.
        """
        kind = StreamEvent(kind)
        async with self._lock:
            if self._closed:
                raise MatchmakerError("subscription manager is closed")
            sub = Subscription(self, kind, handler)
            self._handlers[kind].append(sub)
            log.debug("Subscribed %r (%d %s handlers)", handler, len(self._handlers[kind]), kind.value)
            if self._task is None:
                self._state = StreamState.CONNECTING
                self._task = asyncio.get_running_loop().create_task(
                    self._run(), name="matchmaker-stream",
                )
        return sub

    async def unsubscribe(self, sub: Subscription) -> bool:
        """Stop delivering to ``sub``. Returns False if it was already cancelled.

        The connection is released once no handlers remain.
        """
        async with self._lock:
            if not sub._active:
                return False
            sub._active = False
            subs = self._handlers[sub.kind]
            if sub in subs:
                subs.remove(sub)
            if not self._closed and self.handler_count() == 0 and self._task is not None:
                log.info("Last handler removed, disconnecting event stream")
                await self._stop()
                self._state = StreamState.DISCONNECTED
        return True

    async def close(self) -> None:
        """Tear down the stream. No handler is invoked after this returns."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            self._deactivate_all()
            await self._stop()
            self._state = StreamState.CLOSED
            log.info("Event stream closed")

    async def wait_closed(self) -> None:
        """Block until the stream task finishes (close(), or retries exhausted)."""
        task = self._task
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _deactivate_all(self) -> None:
        for subs in self._handlers.values():
            for sub in subs:
                sub._active = False
            subs.clear()

    async def _stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        if task is asyncio.current_task():
            # Called from a handler; the task unwinds at its next await.
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task
        await self._transport.close()

    def _is_current(self) -> bool:
        return not self._closed and self._task is asyncio.current_task()

    # ── Stream loop ───────────────────────────────────────

    def _on_open(self) -> None:
        if not self._is_current():
            return
        self._state = StreamState.STREAMING
        self._attempts = 0
        self._delay = self._reconnect_delay

    async def _run(self) -> None:
        self._attempts = 0
        self._delay = self._reconnect_delay
        while self._is_current():
            try:
                messages = self._transport.open(
                    self._url, self._last_event_id, on_open=self._on_open,
                )
                async with contextlib.aclosing(messages):
                    async for message in messages:
                        if not self._is_current():
                            return
                        await self._handle_message(message)
                log.warning("Event stream ended by server")
            except StreamConnectionError as exc:
                log.warning("Event stream connection error: %s", exc)
            except Exception as exc:
                log.error("Event stream failed: %s", exc, exc_info=True)

            if not self._is_current():
                return
            self._attempts += 1
            max_attempts = self._max_reconnect_attempts
            if max_attempts is not None and self._attempts > max_attempts:
                await self._give_up(self._attempts - 1)
                return

            self._state = StreamState.RECONNECTING
            delay = self._delay
            log.info("Reconnecting event stream in %.1fs (attempt %d)", delay, self._attempts)
            await asyncio.sleep(delay)
            self._delay = min(delay * 2, self._max_reconnect_delay)
            if not self._is_current():
                return
            self.reconnects += 1

    async def _give_up(self, attempts: int) -> None:
        error = StreamConnectionError(
            f"event stream unavailable after {attempts} reconnect attempts"
        )
        log.error("%s", error)
        self._closed = True
        self._deactivate_all()
        self._task = None
        self._state = StreamState.CLOSED
        self._report(self._on_connection_error, error)
        await self._transport.close()

    async def _handle_message(self, message: SseMessage) -> None:
        try:
            raw: Any = json.loads(message.data)
        except ValueError as exc:
            self._decode_failed(StreamDecodeError(f"event is not valid JSON: {exc}", message.data))
            return
        if not isinstance(raw, dict):
            self._decode_failed(StreamDecodeError("event is not a JSON object", raw))
            return

        kind = resolve_kind(message.event, raw)
        if kind is None:
            log.debug("Ignoring event type %r", message.event)
            return

        if message.id is not None:
            if message.id in self._seen:
                log.debug("Skipping already delivered event id %s", message.id)
                return
            self._seen.add(message.id)
            self._last_event_id = message.id

        try:
            event = decode_event(kind, raw)
        except StreamDecodeError as exc:
            self._decode_failed(exc)
            return

        for sub in list(self._handlers[kind]):
            if not self._is_current():
                return
            if not sub.active:
                continue
            try:
                result = sub.handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                log.exception("Handler %r failed on %s event %s", sub.handler, kind.value, event.hash)

    def _decode_failed(self, error: StreamDecodeError) -> None:
        self.decode_errors += 1
        log.warning("Dropping malformed stream event: %s", error)
        self._report(self._on_decode_error, error)

    @staticmethod
    def _report(hook: ErrorHook | None, error: MatchmakerError) -> None:
        if hook is None:
            return
        try:
            hook(error)
        except Exception:
            log.exception("Error hook %r failed", hook)
