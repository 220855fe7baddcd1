"""
Async Activity Repository Unit Tests
====================================

Tests for ActivityRepository using pytest-asyncio.
"""

import tempfile
from datetime import date
from pathlib import Path

import pytest
import pytest_asyncio

from walktrack.domain.models import PositionSample
from walktrack.infrastructure.database import ActivityRepository, DailyCalorieLedger
from walktrack.infrastructure.gps import ScriptedPositionSource
from walktrack.tracking import SessionFinalizer, TrackingSession

pytestmark = pytest.mark.asyncio

DAY = date(2024, 5, 1)
ROUTE = (
    PositionSample(latitude=-23.5505, longitude=-46.6333, captured_at_ms=1_714_564_800_000),
    PositionSample(latitude=-23.5510, longitude=-46.6330, captured_at_ms=1_714_564_801_000),
    PositionSample(latitude=-23.5519, longitude=-46.6322, captured_at_ms=1_714_564_802_000),
)


@pytest_asyncio.fixture
async def repo():
    """Create a temporary repository for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        repository = ActivityRepository(Path(tmpdir) / "test_walktrack.db")
        await repository.init_schema()
        yield repository


async def test_save_assigns_id_and_stores_fields(repo):
    record = SessionFinalizer.build(ROUTE, 2.5, 900, DAY)

    activity_id = await repo.save(record, "user-1")
    row = await repo.get_activity(activity_id)

    assert row is not None
    assert row["user_id"] == "user-1"
    assert row["type"] == "walk"
    assert row["distance"] == 2.5
    assert row["duration"] == 900
    assert row["calories_burned"] == 125
    assert row["date"] == "2024-05-01"


async def test_route_round_trips_in_order(repo):
    record = SessionFinalizer.build(ROUTE, 0.2, 3, DAY)

    activity_id = await repo.save(record, "user-1")

    assert await repo.get_route(activity_id) == list(ROUTE)


async def test_activities_by_date_and_burned_total(repo):
    await repo.save(SessionFinalizer.build(ROUTE, 1.0, 60, DAY), "user-1")
    await repo.save(SessionFinalizer.build(ROUTE, 2.0, 60, DAY), "user-1")
    await repo.save(SessionFinalizer.build(ROUTE, 4.0, 60, date(2024, 5, 2)), "user-1")
    await repo.save(SessionFinalizer.build(ROUTE, 8.0, 60, DAY), "user-2")

    activities = await repo.get_activities_by_date("user-1", DAY)

    assert len(activities) == 2
    assert await repo.burned_on("user-1", DAY) == 150
    assert await repo.burned_on("user-1", date(2024, 5, 3)) == 0


async def test_activities_by_date_newest_first_with_point_counts(repo):
    first = await repo.save(SessionFinalizer.build(ROUTE, 1.0, 60, DAY), "user-1")
    second = await repo.save(SessionFinalizer.build(ROUTE[:1], 0.0, 5, DAY), "user-1")

    activities = await repo.get_activities_by_date("user-1", DAY)

    assert [(a["id"], a["points"]) for a in activities] == [(second, 1), (first, 3)]


async def test_unknown_activity(repo):
    assert await repo.get_activity("missing") is None
    assert await repo.get_route("missing") == []


async def test_export_gpx(repo, tmp_path):
    activity_id = await repo.save(SessionFinalizer.build(ROUTE, 0.2, 3, DAY), "user-1")
    out = tmp_path / "exports" / "walk.gpx"

    count = await repo.export_gpx(activity_id, out)

    assert count == 3
    content = out.read_text(encoding="utf-8")
    assert content.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert content.count("<trkpt ") == 3
    assert '<trkpt lat="-23.5505" lon="-46.6333">' in content
    assert "<time>2024-05-01T12:00:00Z</time>" in content


async def test_export_gpx_of_unknown_activity_writes_nothing(repo, tmp_path):
    out = tmp_path / "none.gpx"
    assert await repo.export_gpx("missing", out) == 0
    assert not out.exists()


async def test_save_initializes_schema_on_demand(tmp_path):
    repository = ActivityRepository(tmp_path / "fresh.db")

    activity_id = await repository.save(SessionFinalizer.build(ROUTE, 1.0, 10, DAY), "user-1")

    assert (await repository.get_activity(activity_id))["calories_burned"] == 50


async def test_session_persists_through_repository(repo):
    source = ScriptedPositionSource()
    ledger = DailyCalorieLedger()
    session = TrackingSession(
        source,
        SessionFinalizer(repo, ledger, "walker"),
        tick_interval=3600.0,
        today=lambda: DAY,
    )

    await session.start()
    for sample in ROUTE:
        source.push(sample)
        session.tick()
    record = await session.stop()

    stored = await repo.get_activities_by_date("walker", DAY)
    assert len(stored) == 1
    assert stored[0]["calories_burned"] == record.calories_burned
    assert await repo.get_route(stored[0]["id"]) == list(ROUTE)
    assert ledger.burned_on(DAY) == await repo.burned_on("walker", DAY)
