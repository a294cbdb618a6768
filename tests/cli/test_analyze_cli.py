"""Tests for the analyze CLI commands."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sensorycompass.cli import cli
from sensorycompass.cli.analyze import analyze_app


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "missing-config.json"


def _stamp(days_ago: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days_ago, hours=1)).isoformat()


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    """Ten days for s-1 (six intense anxious, four calm) and a little for s-2."""
    emotions = [
        {"id": f"a{day}", "studentId": "s-1", "emotion": "anxious", "intensity": 5, "timestamp": _stamp(day)}
        for day in range(6)
    ]
    emotions += [
        {"id": f"c{day}", "studentId": "s-1", "emotion": "calm", "intensity": 2, "timestamp": _stamp(day)}
        for day in range(6, 10)
    ]
    emotions += [
        {"id": f"h{day}", "studentId": "s-2", "emotion": "happy", "intensity": day + 1, "timestamp": _stamp(9 - day)}
        for day in range(5)
    ]
    path = tmp_path / "records.json"
    path.write_text(json.dumps({"emotions": emotions}))
    return path


def test_run_json_output(runner, records_file, config_path):
    """JSON report contains one entry per subject."""
    result = runner.invoke(
        analyze_app, ["run", str(records_file), "--config-path", str(config_path), "--json"]
    )

    assert result.exit_code == 0
    data = json.loads(result.output)
    reports = {report["subject_id"]: report for report in data["subjects"]}
    assert set(reports) == {"s-1", "s-2"}

    patterns = {p["pattern"]: p for p in reports["s-1"]["patterns"]}
    assert patterns["high-intensity-negative"]["frequency"] == 6
    assert patterns["high-intensity-negative"]["data_points"] == 10
    assert any(alert["type"] == "concern" for alert in reports["s-1"]["alerts"])
    assert reports["s-1"]["correlation_matrix"]["factors"][0] == "avgEmotionIntensity"


def test_run_single_subject_table(runner, records_file, config_path):
    result = runner.invoke(
        analyze_app, ["run", str(records_file), "--subject", "s-2", "--config-path", str(config_path)]
    )

    assert result.exit_code == 0
    assert "Subject s-2" in result.output
    assert "Subject s-1" not in result.output


def test_run_without_subjects(runner, tmp_path, config_path):
    path = tmp_path / "empty.json"
    path.write_text("{}")

    result = runner.invoke(analyze_app, ["run", str(path), "--config-path", str(config_path)])

    assert result.exit_code == 0
    assert "No subjects found" in result.output


def test_run_missing_records(runner, tmp_path, config_path):
    result = runner.invoke(
        analyze_app, ["run", str(tmp_path / "nope.json"), "--config-path", str(config_path)]
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_run_invalid_records(runner, tmp_path, config_path):
    path = tmp_path / "records.json"
    path.write_text(json.dumps({"emotions": [{"id": "e", "emotion": "calm", "intensity": 9}]}))

    result = runner.invoke(analyze_app, ["run", str(path), "--config-path", str(config_path)])

    assert result.exit_code == 1
    assert "RECORD_VALIDATION_ERROR" in result.output


def test_run_uses_config_file(runner, records_file, tmp_path):
    config_path = tmp_path / "analytics.json"
    config_path.write_text(json.dumps({"pattern_analysis": {"min_data_points": 50}}))

    result = runner.invoke(
        analyze_app, ["run", str(records_file), "--config-path", str(config_path), "--json"]
    )

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert all(report["patterns"] == [] for report in data["subjects"])


def test_trend_json(runner, records_file, config_path):
    result = runner.invoke(
        analyze_app, ["trend", str(records_file), "--subject", "s-2", "--config-path", str(config_path), "--json"]
    )

    assert result.exit_code == 0
    row = json.loads(result.output)["subjects"][0]
    assert row["trend"]["direction"] == "increasing"
    assert row["trend"]["metric"] == "Emotion Intensity"
    assert row["explanation"]["level"] in {"low", "medium", "high"}


def test_trend_table_with_insufficient_data(runner, tmp_path, config_path):
    path = tmp_path / "records.json"
    path.write_text(
        json.dumps(
            {"emotions": [{"id": "e", "studentId": "s-3", "emotion": "calm", "intensity": 2, "timestamp": _stamp(1)}]}
        )
    )

    result = runner.invoke(analyze_app, ["trend", str(path), "--config-path", str(config_path)])

    assert result.exit_code == 0
    assert "insufficient data" in result.output


def test_root_cli_wires_subcommands(runner, records_file, config_path):
    result = runner.invoke(
        cli, ["--verbose", "analyze", "run", str(records_file), "--subject", "s-1", "--config-path", str(config_path)]
    )

    assert result.exit_code == 0
    assert "Subject s-1" in result.output
