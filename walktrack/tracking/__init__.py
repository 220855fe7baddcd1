"""Activity tracking engine - sample filtering, route accumulation, sessions."""

from .filter import accept
from .finalizer import KCAL_PER_KM, SessionFinalizer, estimate_calories
from .geodesic import distance_km, haversine_km
from .route import RouteAccumulator, route_distance_km
from .session import PositionSource, Subscription, TrackingSession

__all__ = [
    "KCAL_PER_KM",
    "PositionSource",
    "RouteAccumulator",
    "SessionFinalizer",
    "Subscription",
    "TrackingSession",
    "accept",
    "distance_km",
    "estimate_calories",
    "haversine_km",
    "route_distance_km",
]
