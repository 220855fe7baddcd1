"""GPS infrastructure - gpsd, simulated and scripted position sources."""

from .gpsd_client import GPSConfig, GpsdPositionSource, MockPositionSource, parse_tpv
from .scripted import ScriptedPositionSource

__all__ = [
    "GPSConfig",
    "GpsdPositionSource",
    "MockPositionSource",
    "ScriptedPositionSource",
    "parse_tpv",
]
