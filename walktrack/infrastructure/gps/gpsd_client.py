"""Async gpsd position source with push subscriptions."""

from __future__ import annotations

import asyncio
import json
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ...core.errors import SourceInterrupted, SourceUnavailable
from ...domain.models import SubscriptionPolicy
from ...tracking.session import ErrorCallback, SampleCallback

logger = logging.getLogger(__name__)


@dataclass
class GPSConfig:
    """GPS daemon connection configuration."""

    host: str = "localhost"
    port: int = 2947
    timeout: float = 10.0  # connect timeout, seconds


@dataclass
class GPSState:
    """Internal GPS state tracking."""

    connected: bool = False
    fix_count: int = 0
    error_count: int = 0
    last_fix: Optional[datetime] = None


class TaskSubscription:
    """Subscription backed by a reader task; closing cancels the task."""

    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    @property
    def closed(self) -> bool:
        return self._task.done()

    def close(self) -> None:
        if not self._task.done():
            self._task.cancel()


class GpsdPositionSource:
    """
    Position source reading TPV reports from gpsd.

    Features:
    - Non-blocking async connection per subscription
    - Readings pushed to the subscriber as they arrive
    - Stream loss and read timeouts reported through the error callback

    gpsd only streams live fixes, so readings are never reused from a
    cache; the maximum age of the policy is satisfied by construction.

    Usage:
        source = GpsdPositionSource()
        subscription = await source.subscribe(on_sample, on_error, SubscriptionPolicy())
        ...
        subscription.close()
    """

    def __init__(self, config: GPSConfig | None = None) -> None:
        self.config = config or GPSConfig()
        self._state = GPSState()

    @property
    def state(self) -> GPSState:
        """Get internal state for diagnostics."""
        return self._state

    async def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        policy: SubscriptionPolicy,
    ) -> TaskSubscription:
        """
        Connect to gpsd and start pushing readings.

        Raises:
            SourceUnavailable: gpsd could not be reached
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.config.host, self.config.port),
                timeout=self.config.timeout,
            )
            writer.write(b'?WATCH={"enable":true,"json":true}\n')
            await writer.drain()
        except asyncio.TimeoutError as e:
            self._state.error_count += 1
            raise SourceUnavailable(
                f"gpsd connection timeout to {self.config.host}:{self.config.port}"
            ) from e
        except OSError as e:
            self._state.error_count += 1
            raise SourceUnavailable(f"gpsd connection failed: {e}") from e

        self._state.connected = True
        logger.info("Connected to gpsd at %s:%d", self.config.host, self.config.port)

        task = asyncio.create_task(self._pump(reader, writer, on_sample, on_error, policy))
        return TaskSubscription(task)

    async def _pump(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        policy: SubscriptionPolicy,
    ) -> None:
        read_timeout = policy.timeout_ms / 1000.0
        try:
            while True:
                try:
                    line = await asyncio.wait_for(reader.readline(), timeout=read_timeout)
                except asyncio.TimeoutError:
                    self._state.error_count += 1
                    on_error(SourceInterrupted(f"no position within {policy.timeout_ms} ms"))
                    return
                except OSError as e:
                    self._state.error_count += 1
                    on_error(SourceInterrupted(f"gpsd stream error: {e}"))
                    return

                if not line:
                    on_error(SourceInterrupted("gpsd connection closed by server"))
                    return

                try:
                    self._handle_line(line, on_sample)
                except Exception as e:
                    self._state.error_count += 1
                    logger.error("gpsd reader failed: %s", e)
                    on_error(SourceInterrupted(f"gpsd reader failed: {e}"))
                    return
        finally:
            self._state.connected = False
            writer.close()
            logger.debug("gpsd subscription closed")

    def _handle_line(self, line: bytes, on_sample: SampleCallback) -> None:
        try:
            data = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("GPS JSON parse error: %s", e)
            return

        if not isinstance(data, dict) or data.get("class") != "TPV":
            return

        raw = parse_tpv(data)
        if raw is None:
            return

        self._state.fix_count += 1
        self._state.last_fix = datetime.now()
        on_sample(raw)


def parse_tpv(data: dict) -> dict[str, Any] | None:
    """
    Convert a gpsd TPV report into a raw reading.

    Reports without a 2D/3D fix or without lat/lon return None. Range and
    finiteness checks are left to the sample filter.
    """
    try:
        # Mode: 0=unknown, 1=no fix, 2=2D, 3=3D
        if data.get("mode", 0) < 2:
            return None

        captured_at_ms = None
        if isinstance(data.get("time"), str):
            try:
                stamp = datetime.fromisoformat(data["time"].replace("Z", "+00:00"))
                captured_at_ms = int(stamp.timestamp() * 1000)
            except ValueError:
                logger.debug("Unparseable TPV time: %s", data["time"])

        return {
            "latitude": data["lat"],
            "longitude": data["lon"],
            "captured_at_ms": captured_at_ms,
        }
    except (KeyError, ValueError, TypeError) as e:
        logger.debug("TPV parse error: %s", e)
        return None


class MockPositionSource:
    """
    Simulated walk for development.

    Pushes positions around a circle centred on the start point, one per
    interval.
    """

    def __init__(
        self,
        start_lat: float = -23.5505,
        start_lon: float = -46.6333,
        interval: float = 1.0,
    ) -> None:
        self._start_lat = start_lat
        self._start_lon = start_lon
        self.interval = interval

    async def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        policy: SubscriptionPolicy,
    ) -> TaskSubscription:
        logger.info("Mock GPS connected (simulated)")
        return TaskSubscription(asyncio.create_task(self._walk(on_sample)))

    async def _walk(self, on_sample: SampleCallback) -> None:
        step = 0
        radius = 0.001  # ~111 meters

        while True:
            angle = math.radians(step * 5)
            on_sample(
                {
                    "latitude": self._start_lat + radius * math.sin(angle),
                    "longitude": self._start_lon + radius * math.cos(angle),
                    "captured_at_ms": int(time.time() * 1000),
                }
            )
            step += 1
            await asyncio.sleep(self.interval)
