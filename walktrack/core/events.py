"""
walktrack Event Bus
===================

Fans session lifecycle notifications and asynchronous error reports out
from the tracking engine to whoever displays or records them. The engine
publishes from plain callbacks, so publishing never awaits; handlers run
later on the bus's own task, one event at a time, in publish order.

Usage:
    bus = EventBus()

    @bus.on(EventType.SOURCE_INTERRUPTED)
    async def show_interrupt(event: Event):
        print(f"Tracking stopped: {event.data}")

    await bus.start()
    session = TrackingSession(source, finalizer, event_bus=bus)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, TypeAlias

logger = logging.getLogger(__name__)

Handler: TypeAlias = Callable[["Event"], Awaitable[None] | None]


class EventType(Enum):
    """Notifications published by a tracking session and its finalizer."""

    # Session lifecycle
    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"

    # Position stream
    SAMPLE_ACCEPTED = "sample_accepted"
    SOURCE_INTERRUPTED = "source_interrupted"

    # Persistence
    ACTIVITY_SAVED = "activity_saved"
    ACTIVITY_SAVE_FAILED = "activity_save_failed"


@dataclass(frozen=True)
class Event:
    type: EventType
    data: Any = None
    source: str = "system"
    timestamp: float = field(default_factory=time.time)
    seq: int = 0


@dataclass
class BusStats:
    published: int = 0
    delivered: int = 0
    handler_errors: int = 0
    dropped: int = 0


class EventBus:
    """
    In-process pub/sub for tracking events.

    Handlers may be plain functions or coroutines. A failing handler is
    logged and counted; the remaining handlers still receive the event.
    """

    def __init__(self, max_history: int = 500) -> None:
        self._handlers: dict[EventType, list[Handler]] = {}
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._history: deque[Event] = deque(maxlen=max_history)
        self._task: asyncio.Task | None = None
        self._seq = 0
        self.stats = BusStats()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Handler %s subscribed to %s", getattr(handler, "__name__", handler), event_type.value)

    def unsubscribe(self, event_type: EventType, handler: Handler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        handlers = self._handlers.get(event_type, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def on(self, event_type: EventType) -> Callable[[Handler], Handler]:
        """Decorator form of subscribe()."""

        def decorator(handler: Handler) -> Handler:
            self.subscribe(event_type, handler)
            return handler

        return decorator

    def emit_sync(self, event_type: EventType, data: Any = None, source: str = "system") -> Event:
        """
        Queue an event without awaiting. Safe to call from plain callbacks.

        Events published while the bus is not running are dropped.
        """
        self._seq += 1
        event = Event(type=event_type, data=data, source=source, seq=self._seq)
        if not self.is_running:
            self.stats.dropped += 1
            logger.debug("Event bus not running, dropped %s", event_type.value)
            return event
        self._queue.put_nowait(event)
        self.stats.published += 1
        return event

    async def emit(self, event_type: EventType, data: Any = None, source: str = "system") -> Event:
        return self.emit_sync(event_type, data, source)

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Event bus started")

    async def stop(self, timeout: float = 5.0) -> None:
        """Deliver everything already queued, then stop the dispatch task."""
        task, self._task = self._task, None
        if task is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Event bus stopped with %d undelivered events", self._queue.qsize())
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Event bus stopped")

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._deliver(event)
            finally:
                self._queue.task_done()

    async def _deliver(self, event: Event) -> None:
        self._history.append(event)
        for handler in list(self._handlers.get(event.type, ())):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
                self.stats.delivered += 1
            except Exception as e:
                self.stats.handler_errors += 1
                logger.error("Handler %s failed on %s: %s", getattr(handler, "__name__", handler), event.type.value, e)

    def get_history(self, event_type: EventType | None = None, limit: int | None = None) -> list[Event]:
        """Delivered events, oldest first, optionally filtered by type."""
        events = [e for e in self._history if event_type is None or e.type is event_type]
        return events[-limit:] if limit else events

    def get_stats(self) -> dict[str, int]:
        return {
            **asdict(self.stats),
            "queued": self._queue.qsize(),
            "handlers": sum(len(h) for h in self._handlers.values()),
        }

    def clear_history(self) -> None:
        self._history.clear()
