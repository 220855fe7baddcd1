"""
Tracking Session
================

State machine for one start-to-stop tracking episode. Owns the route,
the duration clock and the position-source subscription.

All entry points run on the asyncio loop, so sample delivery, clock ticks
and lifecycle calls never interleave.

Usage:
    session = TrackingSession(source, finalizer)
    await session.start()
    ...
    record = await session.stop()
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Any, Callable, Protocol

from ..core.errors import SourceInterrupted, SourceUnavailable
from ..core.events import EventBus, EventType
from ..domain.models import (
    ActivityRecord,
    PositionSample,
    SessionSnapshot,
    SessionState,
    SubscriptionPolicy,
)
from .filter import accept
from .finalizer import SessionFinalizer, estimate_calories
from .route import RouteAccumulator

logger = logging.getLogger(__name__)

SampleCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class Subscription(Protocol):
    """Live push subscription to a position source."""

    def close(self) -> None: ...


class PositionSource(Protocol):
    """Push source of raw position readings."""

    async def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        policy: SubscriptionPolicy,
    ) -> Subscription: ...


class TrackingSession:
    """
    Idle/Active controller for position tracking.

    Features:
    - Single live subscription and clock per active period
    - Invalid readings dropped without affecting state
    - Source failure stops tracking without recording an activity
    - Re-entrant: every start begins from an empty route
    """

    def __init__(
        self,
        source: PositionSource,
        finalizer: SessionFinalizer,
        policy: SubscriptionPolicy | None = None,
        tick_interval: float = 1.0,
        event_bus: EventBus | None = None,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.source = source
        self.finalizer = finalizer
        self.policy = policy or SubscriptionPolicy()
        self.tick_interval = tick_interval
        self._bus = event_bus
        self._today = today
        self._route = RouteAccumulator()
        self._state = SessionState.IDLE
        self._elapsed = 0
        self._starting = False
        self._subscription: Subscription | None = None
        self._clock: asyncio.Task | None = None
        self._error_listeners: list[Callable[[SourceInterrupted], None]] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    def current_distance_km(self) -> float:
        return self._route.current_distance_km()

    def current_route(self) -> tuple[PositionSample, ...]:
        return self._route.current_route()

    def snapshot(self) -> SessionSnapshot:
        """Readout for live display."""
        distance = self._route.current_distance_km()
        return SessionSnapshot(
            state=self._state,
            distance_km=distance,
            elapsed_seconds=self._elapsed,
            points=len(self._route),
            estimated_calories=estimate_calories(distance),
        )

    def on_interrupted(self, callback: Callable[[SourceInterrupted], None]) -> None:
        """Register callback for source failures during an active session."""
        self._error_listeners.append(callback)

    async def start(self) -> None:
        """
        Begin tracking.

        No-op when already active.

        Raises:
            SourceUnavailable: the position source could not be acquired
        """
        if self._state is SessionState.ACTIVE or self._starting:
            logger.debug("start() ignored, session already active")
            return

        self._starting = True
        try:
            subscription = await self.source.subscribe(self.on_sample, self.on_error, self.policy)
        except SourceUnavailable:
            logger.warning("Position source unavailable, session not started")
            raise
        except Exception as e:
            logger.warning("Position source unavailable: %s", e)
            raise SourceUnavailable(str(e)) from e
        finally:
            self._starting = False

        self._route.reset()
        self._elapsed = 0
        self._subscription = subscription
        self._state = SessionState.ACTIVE
        self._clock = asyncio.create_task(self._run_clock())

        logger.info("Tracking started")
        self._emit(EventType.SESSION_STARTED)

    def on_sample(self, raw: Any) -> None:
        """Entry point for every raw reading delivered by the source."""
        if self._state is not SessionState.ACTIVE:
            return

        sample = accept(raw)
        if sample is None:
            return

        segment = self._route.add(sample)
        logger.debug(
            "Sample %d accepted (+%.4f km, total %.4f km)",
            len(self._route),
            segment,
            self._route.current_distance_km(),
        )
        self._emit(EventType.SAMPLE_ACCEPTED, sample)

    def on_error(self, exc: BaseException) -> None:
        """Entry point for source failures. Stops tracking without recording."""
        if self._state is not SessionState.ACTIVE:
            return

        self._release()
        self._state = SessionState.IDLE

        error = exc if isinstance(exc, SourceInterrupted) else SourceInterrupted(str(exc))
        logger.warning(
            "Position source failed after %d samples, tracking stopped: %s",
            len(self._route),
            exc,
        )
        self._emit(EventType.SOURCE_INTERRUPTED, error)

        for callback in list(self._error_listeners):
            try:
                callback(error)
            except Exception as e:
                logger.error("Interrupt callback error: %s", e)

    def tick(self) -> None:
        """Advance the duration clock by one second."""
        if self._state is SessionState.ACTIVE:
            self._elapsed += 1

    async def stop(self) -> ActivityRecord | None:
        """
        Stop tracking and record the activity.

        Returns:
            The saved ActivityRecord, or None when nothing was recorded
            (session not active, or no samples accepted)

        Raises:
            PersistenceFailure: the activity could not be saved
        """
        if self._state is not SessionState.ACTIVE:
            return None

        self._release()
        self._state = SessionState.IDLE

        route = self._route.current_route()
        distance = self._route.current_distance_km()
        logger.info(
            "Tracking stopped: %d samples, %.3f km, %d s",
            len(route),
            distance,
            self._elapsed,
        )
        self._emit(EventType.SESSION_STOPPED, self.snapshot())

        if not route:
            return None

        _, record = await self.finalizer.finalize(route, distance, self._elapsed, self._today())
        return record

    async def _run_clock(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    def _release(self) -> None:
        """Release the clock and subscription acquired by start()."""
        clock, self._clock = self._clock, None
        if clock is not None:
            clock.cancel()

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            try:
                subscription.close()
            except Exception as e:
                logger.warning("Error closing position subscription: %s", e)

    def _emit(self, event_type: EventType, data: Any = None) -> None:
        if self._bus is not None:
            self._bus.emit_sync(event_type, data=data, source="session")
