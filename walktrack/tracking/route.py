"""
Route Accumulator
=================

Holds the ordered samples of one session and the running distance over
them. The distance is updated incrementally, one segment per added sample,
and always equals the left-to-right sum of consecutive-pair distances over
the route.

Usage:
    route = RouteAccumulator()

    for sample in accepted_samples:
        route.add(sample)
        print(f"Total: {route.current_distance_km():.2f}km")
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..domain.models import PositionSample
from .geodesic import distance_km


@dataclass
class RouteAccumulator:
    """Append-only route with its running distance in kilometers."""

    _samples: list[PositionSample] = field(default_factory=list)
    _distance_km: float = 0.0

    def reset(self) -> None:
        """Clear the route and zero the distance."""
        self._samples = []
        self._distance_km = 0.0

    def add(self, sample: PositionSample) -> float:
        """
        Append a sample to the route.

        Returns:
            Distance added in kilometers (0 for the first sample after a reset)
        """
        segment = 0.0
        if self._samples:
            segment = distance_km(self._samples[-1], sample)
            self._distance_km += segment
        self._samples.append(sample)
        return segment

    def current_distance_km(self) -> float:
        return self._distance_km

    def current_route(self) -> tuple[PositionSample, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def to_dict(self) -> dict:
        """Export accumulator state as dictionary."""
        last = self._samples[-1] if self._samples else None
        return {
            "distance_km": self._distance_km,
            "points_count": len(self._samples),
            "last_lat": last.latitude if last else None,
            "last_lon": last.longitude if last else None,
        }


def route_distance_km(route: tuple[PositionSample, ...] | list[PositionSample]) -> float:
    """Recompute the total distance of a route from scratch."""
    total = 0.0
    for prev, curr in zip(route, route[1:]):
        total += distance_km(prev, curr)
    return total
