"""Tests for the mend CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from mend.cli import app

runner = CliRunner()

NOW = "2025-03-10T08:00:00+00:00"


@pytest.fixture
def payload_path(tmp_path):
    """Payload with one fresh high-intensity run and two metrics."""
    payload = {
        "athlete_id": "athlete-1",
        "activities": [
            {
                "id": "run-1",
                "type": "run",
                "start_time": "2025-03-10T07:00:00+00:00",
                "duration_sec": 3600,
                "intensity": "high",
            }
        ],
        "biometrics": {
            "hrv": {
                "current": 50,
                "samples": [{"date": f"2025-03-0{d}", "value": 50} for d in range(5, 10)],
            },
            "sleep_duration": {
                "current": 7.0,
                "samples": [{"date": f"2025-03-0{d}", "value": 7.0} for d in range(5, 10)],
            },
        },
    }
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload))
    return path


def test_score_json(payload_path):
    result = runner.invoke(app, ["score", "--input", str(payload_path), "--now", NOW, "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["base_score"] == 76
    assert data["cooldown_adjustment"] == 65
    assert data["overall_score"] == 49
    assert set(data["metrics"]) == {"hrv", "sleep_duration"}


def test_score_table_output(payload_path):
    result = runner.invoke(app, ["score", "--input", str(payload_path), "--now", NOW])

    assert result.exit_code == 0, result.output
    assert "Recovery score" in result.stdout
    assert "Somewhat fatigued" in result.stdout


def test_cooldown_json(payload_path):
    result = runner.invoke(app, ["cooldown", "--input", str(payload_path), "--now", NOW, "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["is_in_cooldown"] is True
    assert data["adjustment"] == 65
    assert data["description"] == "Recovery in progress: 1d 12h remaining"
    assert data["tips"]


def test_cooldown_is_persisted_between_runs(payload_path, tmp_path):
    database_url = f"sqlite:///{tmp_path / 'mend.db'}"
    args = ["cooldown", "--input", str(payload_path), "--database-url", database_url, "--json"]

    first = runner.invoke(app, [*args, "--now", NOW])
    later = runner.invoke(app, [*args, "--now", "2025-03-11T02:00:00+00:00"])

    assert first.exit_code == 0, first.output
    assert later.exit_code == 0, later.output
    assert json.loads(first.stdout)["percentage"] == 0
    assert json.loads(later.stdout)["percentage"] == 50


def test_training_json(payload_path):
    result = runner.invoke(app, ["training", "--input", str(payload_path), "--now", NOW, "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert len(data["daily_volumes"]) == 7
    assert data["work_rest_ratio"]["active_days"] == 1
    assert data["load"] > 0


def test_training_table_output(payload_path):
    result = runner.invoke(app, ["training", "--input", str(payload_path), "--now", NOW])

    assert result.exit_code == 0, result.output
    assert "Work:rest" in result.stdout
    assert "1:6" in result.stdout


def test_missing_input_file_exits_with_error(tmp_path):
    result = runner.invoke(app, ["score", "--input", str(tmp_path / "missing.json")])

    assert result.exit_code == 1


def test_invalid_now_exits_with_error(payload_path):
    result = runner.invoke(app, ["score", "--input", str(payload_path), "--now", "yesterday"])

    assert result.exit_code == 1


def test_score_survives_malformed_records(tmp_path):
    payload = {
        "activities": [
            {"id": "bad", "start_time": "2025-03-10T07:00:00+00:00", "duration_sec": "abc"},
        ],
        "biometrics": {
            "hrv": {"current": 50, "samples": [{"date": "2025-03-08", "value": 50}, {"value": "n/a"}]},
            "spo2": {"current": 97},
        },
    }
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload))

    result = runner.invoke(app, ["score", "--input", str(path), "--now", NOW, "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert set(data["metrics"]) == {"hrv"}
    assert data["cooldown_adjustment"] == 100


def test_score_json_includes_notification(payload_path):
    result = runner.invoke(app, ["score", "--input", str(payload_path), "--now", NOW, "--json"])

    data = json.loads(result.stdout)
    assert data["notification"] == "Your recovery score is 49. Somewhat fatigued. Consider light activity."
