from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .domain.models import SubscriptionPolicy


class TrackingConfig(BaseModel):
    tick_interval_secs: float = Field(1.0, gt=0)
    high_accuracy: bool = Field(True)
    timeout_ms: int = Field(5000, ge=1)
    maximum_age_ms: int = Field(0, ge=0)  # 0 = fresh fixes only

    @property
    def policy(self) -> SubscriptionPolicy:
        return SubscriptionPolicy(
            high_accuracy=self.high_accuracy,
            timeout_ms=self.timeout_ms,
            maximum_age_ms=self.maximum_age_ms,
        )


class GPSConfig(BaseModel):
    """GPS daemon configuration."""

    host: str = Field("localhost")
    port: int = Field(2947, ge=1, le=65535)
    timeout: float = Field(10.0, ge=1.0)
    mock_mode: bool = Field(False)  # Use simulated walk instead of gpsd
    mock_lat: float = Field(-23.5505, ge=-90, le=90)
    mock_lon: float = Field(-46.6333, ge=-180, le=180)
    mock_interval_secs: float = Field(1.0, gt=0)


class StorageConfig(BaseModel):
    db_path: Path = Field(Path("data/walktrack.db"))

    @field_validator("db_path")
    @classmethod
    def _expand_db_path(cls, value: Path) -> Path:
        return value.expanduser()


class LoggingConfig(BaseModel):
    level: str = Field("INFO")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value}")
        return level


class WalktrackConfig(BaseModel):
    user_id: str = Field("local", min_length=1)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    gps: GPSConfig = Field(default_factory=GPSConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: Path) -> WalktrackConfig:
    with Path(path).expanduser().open("r", encoding="utf-8") as fp:
        raw = yaml.safe_load(fp) or {}
    try:
        return WalktrackConfig.model_validate(raw)
    except ValidationError as exc:  # pragma: no cover - formatting
        raise ValueError(str(exc)) from exc


def resolve_config_path(cli_path: Path | None) -> Path:
    """Resolve config path by priority: CLI, env, /etc/walktrack, repo configs."""
    candidates: list[Path] = []
    if cli_path:
        p = Path(cli_path).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    env = os.environ.get("WALKTRACK_CONFIG")
    if env:
        p = Path(env).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    for p in [Path("/etc/walktrack/walktrack.yml"), Path("configs/walktrack.yml")]:
        if p.exists():
            return p.resolve()
        candidates.append(p)
    # Fallback to first candidate even if not exists to surface errors consistently
    return candidates[0] if candidates else Path("configs/walktrack.yml").resolve()
