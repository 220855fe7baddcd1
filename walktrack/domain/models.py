"""walktrack Domain Models - Pydantic models for core entities."""

from __future__ import annotations

import datetime as dt
import time
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _now_ms() -> int:
    return int(time.time() * 1000)


class ActivityType(str, Enum):
    """Kinds of recorded activity."""

    WALK = "walk"


class SessionState(str, Enum):
    """Tracking session lifecycle states."""

    IDLE = "idle"
    ACTIVE = "active"


class PositionSample(BaseModel):
    """One accepted geographic reading with its capture time."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    captured_at_ms: int = Field(
        default_factory=_now_ms,
        validation_alias=AliasChoices("captured_at_ms", "capturedAtMillis"),
    )  # epoch milliseconds

    @field_validator("latitude", "longitude", "captured_at_ms", mode="before")
    @classmethod
    def _reject_bool(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("booleans are not positions or timestamps")
        return value

    @field_validator("captured_at_ms", mode="before")
    @classmethod
    def _stamp_missing_time(cls, value: object) -> object:
        # Readings without a capture time are stamped on receipt
        return _now_ms() if value is None else value


class SubscriptionPolicy(BaseModel):
    """Delivery policy requested from a position source."""

    model_config = ConfigDict(frozen=True)

    high_accuracy: bool = True
    timeout_ms: int = Field(5000, ge=1)
    maximum_age_ms: int = Field(0, ge=0)  # 0 = never reuse cached fixes


class ActivityRecord(BaseModel):
    """Finalized summary of a completed tracking session."""

    model_config = ConfigDict(frozen=True)

    type: ActivityType = ActivityType.WALK
    distance_km: float = Field(..., ge=0)
    duration_seconds: int = Field(..., ge=0)
    calories_burned: int = Field(..., ge=0)
    route: tuple[PositionSample, ...] = ()
    date: dt.date

    @property
    def points(self) -> int:
        """Number of samples on the recorded route."""
        return len(self.route)


class SessionSnapshot(BaseModel):
    """Live readout of a tracking session for display."""

    state: SessionState
    distance_km: float = 0.0
    elapsed_seconds: int = 0
    points: int = 0
    estimated_calories: int = 0
