"""Position source driven by a fixed list of readings (replay, tests)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

from ...core.errors import SourceUnavailable
from ...domain.models import SubscriptionPolicy
from ...tracking.session import ErrorCallback, SampleCallback

logger = logging.getLogger(__name__)


class ScriptedSubscription:
    def __init__(self, source: ScriptedPositionSource) -> None:
        self._source = source
        self.closed = False

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._source._detach(self)


class ScriptedPositionSource:
    """
    Source that delivers readings on demand.

    ``push``/``fail`` deliver to the current subscriber; ``replay`` pushes
    the scripted readings in order. Subscribing while ``available`` is
    False raises SourceUnavailable.
    """

    def __init__(self, readings: Iterable[Any] = (), available: bool = True) -> None:
        self.readings = list(readings)
        self.available = available
        self.subscribe_count = 0
        self.last_policy: SubscriptionPolicy | None = None
        self._subscription: ScriptedSubscription | None = None
        self._on_sample: SampleCallback | None = None
        self._on_error: ErrorCallback | None = None

    @property
    def active_subscriptions(self) -> int:
        return 0 if self._subscription is None else 1

    async def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        policy: SubscriptionPolicy,
    ) -> ScriptedSubscription:
        if not self.available:
            raise SourceUnavailable("position source not available")
        if self._subscription is not None:
            raise RuntimeError("scripted source already has a subscriber")

        self.subscribe_count += 1
        self.last_policy = policy
        self._on_sample = on_sample
        self._on_error = on_error
        self._subscription = ScriptedSubscription(self)
        return self._subscription

    def push(self, raw: Any) -> bool:
        """Deliver one reading. Returns False when nobody is subscribed."""
        if self._on_sample is None:
            return False
        self._on_sample(raw)
        return True

    def fail(self, exc: BaseException) -> bool:
        """Report a source failure. Returns False when nobody is subscribed."""
        if self._on_error is None:
            return False
        self._on_error(exc)
        return True

    async def replay(
        self,
        interval: float = 0.0,
        after_each: Callable[[Any], None] | None = None,
    ) -> int:
        """
        Push every scripted reading in order. Returns the number delivered.

        ``after_each`` is called with each delivered reading, e.g. to advance
        a session clock by the time the reading represents. Stops early when
        the subscriber goes away.
        """
        delivered = 0
        for raw in self.readings:
            if not self.push(raw):
                break
            delivered += 1
            if after_each is not None:
                after_each(raw)
            if interval:
                await asyncio.sleep(interval)
        logger.debug("Replayed %d/%d readings", delivered, len(self.readings))
        return delivered

    def _detach(self, subscription: ScriptedSubscription) -> None:
        if self._subscription is subscription:
            self._subscription = None
            self._on_sample = None
            self._on_error = None
