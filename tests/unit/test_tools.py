"""Unit tests for duration formatting and reading files."""

from __future__ import annotations

import json

import pytest

from walktrack.tools.formatting import format_duration
from walktrack.tools.readings_io import load_readings


@pytest.mark.parametrize(
    "seconds,expected",
    [
        (0, "0s"),
        (42, "42s"),
        (60, "1m 0s"),
        (125, "2m 5s"),
        (3600, "1h 0m 0s"),
        (3725, "1h 2m 5s"),
        (-5, "0s"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_load_json_readings(tmp_path):
    path = tmp_path / "walk.json"
    path.write_text(json.dumps([{"lat": 1.0, "lng": 2.0, "timestamp": 3}]), encoding="utf-8")

    assert load_readings(path) == [{"latitude": 1.0, "longitude": 2.0, "captured_at_ms": 3}]


def test_load_csv_readings_keeps_blank_as_none(tmp_path):
    path = tmp_path / "walk.csv"
    path.write_text("Latitude,Longitude,captured_at_ms\n1.5,2.5,10\n,3,\n", encoding="utf-8")

    assert load_readings(path) == [
        {"latitude": "1.5", "longitude": "2.5", "captured_at_ms": "10"},
        {"latitude": None, "longitude": "3", "captured_at_ms": None},
    ]


def test_json_must_be_array(tmp_path):
    path = tmp_path / "walk.json"
    path.write_text('{"latitude": 1}', encoding="utf-8")

    with pytest.raises(ValueError):
        load_readings(path)


def test_camel_case_capture_time_column(tmp_path):
    path = tmp_path / "walk.json"
    path.write_text(json.dumps([{"latitude": 1.0, "longitude": 2.0, "capturedAtMillis": 1000}]), encoding="utf-8")

    assert load_readings(path) == [{"latitude": 1.0, "longitude": 2.0, "captured_at_ms": 1000}]
