import json
from datetime import date
from pathlib import Path

from typer.testing import CliRunner

from walktrack.cli import app


def _write_config(tmp_path: Path) -> Path:
    cfg = tmp_path / "walktrack.yml"
    cfg.write_text(
        f"user_id: tester\nstorage:\n  db_path: {tmp_path / 'walk.db'}\nlogging:\n  level: WARNING\n",
        encoding="utf-8",
    )
    return cfg


def _write_readings(tmp_path: Path) -> Path:
    readings = tmp_path / "walk.json"
    readings.write_text(
        json.dumps(
            [
                {"latitude": 0.0, "longitude": 0.0, "captured_at_ms": 0},
                {"latitude": 0.0, "longitude": 0.1, "captured_at_ms": 1000},
                {"latitude": 200.0, "longitude": 0.1, "captured_at_ms": 1500},
                {"latitude": 0.1, "longitude": 0.1, "captured_at_ms": 2000},
            ]
        ),
        encoding="utf-8",
    )
    return readings


def test_version_command():
    runner = CliRunner()
    result = runner.invoke(app, ["version"], prog_name="walktrack")
    assert result.exit_code == 0
    assert "walktrack" in result.stdout


def test_config_validate_ok(tmp_path):
    runner = CliRunner()
    result = runner.invoke(app, ["config-validate", str(_write_config(tmp_path))], prog_name="walktrack")
    assert result.exit_code == 0
    assert "Config OK" in result.stdout
    assert "tester" in result.stdout


def test_config_validate_rejects_bad_file(tmp_path):
    bad = tmp_path / "bad.yml"
    bad.write_text("gps:\n  port: 99999\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(app, ["config-validate", str(bad)], prog_name="walktrack")
    assert result.exit_code == 1
    assert "validation failed" in result.stdout


def test_replay_saves_activity_and_history_lists_it(tmp_path):
    runner = CliRunner()
    cfg = _write_config(tmp_path)
    readings = _write_readings(tmp_path)

    result = runner.invoke(app, ["replay", str(readings), "--config", str(cfg)], prog_name="walktrack")
    assert result.exit_code == 0, result.stdout
    assert "1112" in result.stdout
    assert "4s" in result.stdout
    assert "Calories burned today: 1112 kcal" in result.stdout

    result = runner.invoke(app, ["replay", str(readings), "--config", str(cfg)], prog_name="walktrack")
    assert result.exit_code == 0, result.stdout
    assert "Calories burned today: 2224 kcal" in result.stdout

    result = runner.invoke(
        app,
        ["history", "--config", str(cfg), "--date", date.today().isoformat()],
        prog_name="walktrack",
    )
    assert result.exit_code == 0, result.stdout
    assert "Last walk: 22.24 km" in result.stdout
    assert "Calories burned: 2224 kcal" in result.stdout
    assert "Route " not in result.stdout


def test_history_route_lists_points(tmp_path):
    runner = CliRunner()
    cfg = _write_config(tmp_path)
    runner.invoke(app, ["replay", str(_write_readings(tmp_path)), "--config", str(cfg)], prog_name="walktrack")

    result = runner.invoke(app, ["history", "--config", str(cfg), "--route"], prog_name="walktrack")

    assert result.exit_code == 0, result.stdout
    assert "Route " in result.stdout
    assert "0.100000" in result.stdout
    assert "00:00:02" in result.stdout


def test_replay_of_only_invalid_readings_records_nothing(tmp_path):
    readings = tmp_path / "bad.csv"
    readings.write_text("lat,lon\n200,0\n,\nabc,1\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["replay", str(readings), "--config", str(_write_config(tmp_path))],
        prog_name="walktrack",
    )

    assert result.exit_code == 0, result.stdout
    assert "'recorded': False" in result.stdout


def test_history_rejects_bad_date(tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["history", "--config", str(_write_config(tmp_path)), "--date", "yesterday"],
        prog_name="walktrack",
    )
    assert result.exit_code == 2


def test_export_gpx_unknown_activity(tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["export-gpx", "nope", str(tmp_path / "out.gpx"), "--config", str(_write_config(tmp_path))],
        prog_name="walktrack",
    )
    assert result.exit_code == 1
    assert "No route points" in result.stdout
