from __future__ import annotations

import asyncio
import datetime as dt
import importlib.metadata as md
import logging
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import WalktrackConfig, load_config, resolve_config_path
from .core.errors import PersistenceFailure, SourceInterrupted, TrackingError
from .domain.models import ActivityRecord, ActivityType, PositionSample
from .infrastructure.database import ActivityRepository, DailyCalorieLedger
from .infrastructure.gps import GPSConfig, GpsdPositionSource, MockPositionSource, ScriptedPositionSource
from .tools.formatting import format_duration
from .tools.readings_io import load_readings
from .tracking import SessionFinalizer, TrackingSession

# Typer application: tests import this
app = typer.Typer(no_args_is_help=True, add_completion=False, help="walktrack CLI")
console = Console()


def _load(config: Path | None) -> WalktrackConfig:
    resolved = resolve_config_path(config)
    if not resolved.exists():
        return WalktrackConfig()
    try:
        return load_config(resolved)
    except ValueError as exc:
        console.print(f"Config validation failed: {exc}")
        raise typer.Exit(code=1) from exc


def _setup_logging(cfg: WalktrackConfig) -> None:
    logging.basicConfig(
        level=cfg.logging.level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _summary(record: ActivityRecord | None) -> dict:
    if record is None:
        return {"recorded": False}
    return {
        "recorded": True,
        "type": record.type.value,
        "distance_km": round(record.distance_km, 2),
        "duration": format_duration(record.duration_seconds),
        "calories_burned": record.calories_burned,
        "points": record.points,
        "date": record.date.isoformat(),
    }


async def _open_ledger(repo: ActivityRepository, user_id: str, day: dt.date) -> DailyCalorieLedger:
    """Ledger starting from what is already stored for the day."""
    ledger = DailyCalorieLedger()
    ledger.open_day(day, await repo.burned_on(user_id, day))
    return ledger


@app.command()
def version() -> None:
    """Print version information."""
    try:
        console.print(f"walktrack {md.version('walktrack')}")
    except md.PackageNotFoundError:
        from . import __version__

        console.print(f"walktrack {__version__}")
    raise typer.Exit(code=0)


@app.command(name="config-validate")
def config_validate(path: Path = typer.Argument(Path("configs/walktrack.yml"))) -> None:
    """Validate and show resolved configuration."""
    resolved = resolve_config_path(path)
    console.print(f"Using config: {resolved}")
    try:
        cfg = load_config(resolved)
    except (OSError, ValueError) as exc:
        console.print(f"Config validation failed: {exc}")
        raise typer.Exit(code=1) from exc
    console.print("Config OK.")
    console.print(f"- user: {cfg.user_id}")
    console.print(f"- database: {cfg.storage.db_path}")
    console.print(f"- gps: {'mock' if cfg.gps.mock_mode else f'{cfg.gps.host}:{cfg.gps.port}'}")


@app.command()
def replay(
    readings: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON or CSV readings"),
    config: Path | None = typer.Option(None, "--config", "-c"),
    seconds_per_reading: int = typer.Option(1, "--seconds-per-reading", min=0),
    db: Path | None = typer.Option(None, "--db", help="Override storage.db_path"),
) -> None:
    """Run a tracking session over recorded readings and save the activity."""
    cfg = _load(config)
    _setup_logging(cfg)
    repo = ActivityRepository(db or cfg.storage.db_path)
    source = ScriptedPositionSource(load_readings(readings))
    today = dt.date.today()

    async def _run() -> tuple[ActivityRecord | None, int]:
        await repo.init_schema()
        ledger = await _open_ledger(repo, cfg.user_id, today)
        session = TrackingSession(
            source,
            SessionFinalizer(repo, ledger, cfg.user_id),
            policy=cfg.tracking.policy,
            # Replay drives the clock itself
            tick_interval=3600.0,
            today=lambda: today,
        )

        def _advance(raw: object) -> None:
            for _ in range(seconds_per_reading):
                session.tick()

        await session.start()
        await source.replay(after_each=_advance)
        record = await session.stop()
        return record, ledger.burned_on(today)

    try:
        record, burned = asyncio.run(_run())
    except TrackingError as exc:
        console.print(f"Replay failed: {exc}")
        raise typer.Exit(code=1) from exc
    console.print(_summary(record))
    console.print(f"Calories burned today: {burned} kcal")


@app.command()
def track(
    config: Path | None = typer.Option(None, "--config", "-c"),
    seconds: int = typer.Option(0, "--seconds", min=0, help="Stop after N seconds (0 = until Ctrl-C)"),
    mock: bool = typer.Option(False, "--mock", help="Use simulated walk instead of gpsd"),
) -> None:
    """Track a live walk from gpsd and save it when stopped."""
    cfg = _load(config)
    _setup_logging(cfg)
    repo = ActivityRepository(cfg.storage.db_path)
    if mock or cfg.gps.mock_mode:
        source = MockPositionSource(cfg.gps.mock_lat, cfg.gps.mock_lon, cfg.gps.mock_interval_secs)
    else:
        source = GpsdPositionSource(GPSConfig(host=cfg.gps.host, port=cfg.gps.port, timeout=cfg.gps.timeout))
    today = dt.date.today()

    async def _run() -> tuple[ActivityRecord | None, int]:
        await repo.init_schema()
        ledger = await _open_ledger(repo, cfg.user_id, today)
        session = TrackingSession(
            source,
            SessionFinalizer(repo, ledger, cfg.user_id),
            policy=cfg.tracking.policy,
            tick_interval=cfg.tracking.tick_interval_secs,
            today=lambda: today,
        )
        stop_requested = asyncio.Event()
        failures: list[SourceInterrupted] = []

        def _on_interrupt(error: SourceInterrupted) -> None:
            failures.append(error)
            stop_requested.set()

        session.on_interrupted(_on_interrupt)
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, stop_requested.set)
        except NotImplementedError:
            # Windows: Ctrl-C aborts without saving
            pass

        await session.start()
        console.print(f"Tracking... press Ctrl-C to stop. Burned today so far: {ledger.burned_on(today)} kcal")
        while not stop_requested.is_set():
            if seconds and session.elapsed_seconds >= seconds:
                break
            try:
                await asyncio.wait_for(stop_requested.wait(), timeout=1.0)
            except asyncio.TimeoutError:
                snap = session.snapshot()
                console.print(
                    f"{snap.distance_km:.2f} km  {format_duration(snap.elapsed_seconds)}  "
                    f"{snap.points} pts  ~{snap.estimated_calories} kcal"
                )
        if failures:
            raise failures[0]
        record = await session.stop()
        return record, ledger.burned_on(today)

    try:
        record, burned = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Interrupted before the activity could be saved.")
        raise typer.Exit(code=130)
    except SourceInterrupted as exc:
        console.print(f"Tracking stopped, location unavailable: {exc}")
        raise typer.Exit(code=1) from exc
    except PersistenceFailure as exc:
        console.print(f"Could not save activity, try again: {exc}")
        raise typer.Exit(code=1) from exc
    except TrackingError as exc:
        console.print(f"Tracking failed: {exc}")
        raise typer.Exit(code=1) from exc
    console.print(_summary(record))
    console.print(f"Calories burned today: {burned} kcal")


@app.command()
def history(
    config: Path | None = typer.Option(None, "--config", "-c"),
    day: str | None = typer.Option(None, "--date", help="YYYY-MM-DD (default today)"),
    db: Path | None = typer.Option(None, "--db", help="Override storage.db_path"),
    route: bool = typer.Option(False, "--route", help="Also list the route points of each activity"),
) -> None:
    """List stored activities, the last walk and calories burned for a day."""
    cfg = _load(config)
    try:
        when = dt.date.fromisoformat(day) if day else dt.date.today()
    except ValueError as exc:
        console.print(f"Invalid date: {day}")
        raise typer.Exit(code=2) from exc
    repo = ActivityRepository(db or cfg.storage.db_path)

    async def _run() -> tuple[list[dict], int, dict[str, list[PositionSample]]]:
        await repo.init_schema()
        activities = await repo.get_activities_by_date(cfg.user_id, when)
        routes = {a["id"]: await repo.get_route(a["id"]) for a in activities} if route else {}
        return activities, await repo.burned_on(cfg.user_id, when), routes

    activities, burned, routes = asyncio.run(_run())

    table = Table(title=f"Activities on {when.isoformat()}")
    table.add_column("id")
    table.add_column("type")
    table.add_column("distance")
    table.add_column("time")
    table.add_column("points", justify="right")
    table.add_column("kcal", justify="right")
    for a in activities:
        table.add_row(
            a["id"],
            a["type"],
            f"{a['distance']:.2f} km",
            format_duration(a["duration"]),
            str(a["points"]),
            str(a["calories_burned"]),
        )
    console.print(table)

    last_walk = next((a for a in activities if a["type"] == ActivityType.WALK.value), None)
    if last_walk is not None:
        console.print(f"Last walk: {last_walk['distance']:.2f} km")
    console.print(f"Calories burned: {burned} kcal")

    for activity_id, points in routes.items():
        route_table = Table(title=f"Route {activity_id}")
        route_table.add_column("#", justify="right")
        route_table.add_column("latitude")
        route_table.add_column("longitude")
        route_table.add_column("captured at")
        for n, p in enumerate(points, start=1):
            stamp = dt.datetime.fromtimestamp(p.captured_at_ms / 1000, tz=dt.UTC)
            route_table.add_row(str(n), f"{p.latitude:.6f}", f"{p.longitude:.6f}", stamp.strftime("%H:%M:%S"))
        console.print(route_table)


@app.command(name="export-gpx")
def export_gpx(
    activity_id: str = typer.Argument(...),
    output: Path = typer.Argument(...),
    config: Path | None = typer.Option(None, "--config", "-c"),
    db: Path | None = typer.Option(None, "--db", help="Override storage.db_path"),
) -> None:
    """Write the route of a stored activity as GPX."""
    cfg = _load(config)
    repo = ActivityRepository(db or cfg.storage.db_path)

    async def _run() -> int:
        await repo.init_schema()
        return await repo.export_gpx(activity_id, output)

    count = asyncio.run(_run())
    if count == 0:
        console.print(f"No route points for activity {activity_id}")
        raise typer.Exit(code=1)
    console.print({"exported": count, "output": str(output)})


def launch() -> None:
    """Entry point when executed as a module/script."""
    cli()


cli = typer.main.get_command(app)
