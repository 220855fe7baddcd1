"""Load recorded raw readings for replay."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

_FIELD_ALIASES = {
    "lat": "latitude",
    "lon": "longitude",
    "lng": "longitude",
    "timestamp": "captured_at_ms",
    "time_ms": "captured_at_ms",
    "capturedatmillis": "captured_at_ms",
}


def _normalize(row: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in row.items():
        name = _FIELD_ALIASES.get(key.strip().lower(), key.strip().lower())
        out[name] = None if value == "" else value
    return out


def load_readings(path: Path) -> list[dict[str, Any]]:
    """
    Read raw readings from a JSON array or a CSV file with a header row.

    Values are passed through as-is; validation is the sample filter's job,
    so malformed rows are kept and later dropped by it.
    """
    path = Path(path)
    if path.suffix.lower() == ".csv":
        with path.open("r", encoding="utf-8", newline="") as fp:
            return [_normalize(row) for row in csv.DictReader(fp)]

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of readings")
    return [_normalize(row) if isinstance(row, dict) else row for row in data]
