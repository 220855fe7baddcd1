"""Unit tests for raw reading acceptance."""

from __future__ import annotations

import math
import time
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from walktrack.domain.models import PositionSample
from walktrack.tracking.filter import accept


class TestAccept:
    def test_valid_mapping(self):
        sample = accept({"latitude": -23.55, "longitude": -46.63, "captured_at_ms": 1_700_000_000_000})
        assert sample == PositionSample(latitude=-23.55, longitude=-46.63, captured_at_ms=1_700_000_000_000)

    def test_object_with_attributes(self):
        raw = SimpleNamespace(latitude=41.0, longitude=29.0, captured_at_ms=5)
        sample = accept(raw)
        assert sample is not None
        assert (sample.latitude, sample.longitude, sample.captured_at_ms) == (41.0, 29.0, 5)

    def test_sample_passes_through(self):
        sample = PositionSample(latitude=1.0, longitude=2.0, captured_at_ms=3)
        assert accept(sample) is sample

    @pytest.mark.parametrize(
        "raw",
        [
            {"latitude": 200.0, "longitude": 0.0},
            {"latitude": -90.5, "longitude": 0.0},
            {"latitude": 0.0, "longitude": 180.01},
            {"latitude": 0.0, "longitude": -181.0},
            {"latitude": math.nan, "longitude": 0.0},
            {"latitude": 0.0, "longitude": math.inf},
            {"latitude": -math.inf, "longitude": 0.0},
            {"latitude": 10.0},
            {"longitude": 10.0},
            {"latitude": None, "longitude": 10.0},
            {"latitude": "north", "longitude": 10.0},
            {"latitude": True, "longitude": False},
            {"latitude": 1.0, "longitude": True},
            {"latitude": 1.0, "longitude": 2.0, "captured_at_ms": True},
            {},
            None,
        ],
    )
    def test_rejected(self, raw):
        assert accept(raw) is None

    def test_boundaries_accepted(self):
        for lat, lon in [(90, 180), (-90, -180), (0, 0)]:
            assert accept({"latitude": lat, "longitude": lon}) is not None

    def test_missing_time_is_stamped(self):
        before = int(time.time() * 1000)
        sample = accept({"latitude": 1.0, "longitude": 1.0})
        after = int(time.time() * 1000)
        assert sample is not None
        assert before <= sample.captured_at_ms <= after

    def test_null_time_is_stamped(self):
        sample = accept({"latitude": 1.0, "longitude": 1.0, "captured_at_ms": None})
        assert sample is not None
        assert sample.captured_at_ms > 0

    def test_camel_case_capture_time_kept(self):
        sample = accept({"latitude": 1.0, "longitude": 2.0, "capturedAtMillis": 1000})
        assert sample is not None
        assert sample.captured_at_ms == 1000

    def test_camel_case_capture_time_on_objects(self):
        sample = accept(SimpleNamespace(latitude=1.0, longitude=2.0, capturedAtMillis=42))
        assert sample is not None
        assert sample.captured_at_ms == 42

    def test_no_jump_filtering(self):
        """Range-valid readings are accepted however far apart."""
        assert accept({"latitude": 89.0, "longitude": 179.0}) is not None
        assert accept({"latitude": -89.0, "longitude": -179.0}) is not None


def test_samples_are_immutable():
    sample = PositionSample(latitude=1.0, longitude=2.0, captured_at_ms=3)
    with pytest.raises(ValidationError):
        sample.latitude = 5.0  # type: ignore[misc]
