# ABOUTME: Verifies the scheduling CLI exposes its commands and renders predictions.
# ABOUTME: Drives the Typer app against a small JSON-lines session log.

import json

import pytest
import typer
from typer.testing import CliRunner

from scripts import schedule_cli

runner = CliRunner()


def _write_log(path):
    rows = []
    for day in (2, 9, 16):
        rows.append(
            {
                "timestamp": f"2024-01-{day:02d}T15:05:00",
                "session_minutes": 30,
                "total_questions": 10,
                "correct_answers": 9,
                "average_response_time": 5.0,
                "subject": "Biology",
                "focus_score": 0.8,
                "retention_score": 0.8,
                "completed_session": True,
                "dominant_emotion": "confident",
                "difficulty": "medium",
            }
        )
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    return path


def test_cli_has_predict_weekly_and_history_commands():
    command_names = {cmd.name or cmd.callback.__name__ for cmd in schedule_cli.app.registered_commands}
    assert {"predict", "weekly", "history"} <= command_names


def test_parse_priorities():
    assert schedule_cli.parse_priorities(["Math=2", "Art History=0.5"]) == {"Math": 2.0, "Art History": 0.5}
    with pytest.raises(typer.BadParameter):
        schedule_cli.parse_priorities(["Math"])
    with pytest.raises(typer.BadParameter):
        schedule_cli.parse_priorities(["Math=lots"])


def test_predict_command_prints_recommendation(tmp_path):
    log = _write_log(tmp_path / "sessions.jsonl")
    result = runner.invoke(
        schedule_cli.app,
        ["predict", "--history", str(log), "--subject", "Biology", "--priority", "Biology=1", "--date", "2024-01-23"],
    )
    assert result.exit_code == 0, result.output
    assert "Biology" in result.output
    assert "2024-01-23 15:30" in result.output


def test_weekly_command_lists_seven_days(tmp_path):
    log = _write_log(tmp_path / "sessions.jsonl")
    result = runner.invoke(
        schedule_cli.app,
        ["weekly", "--history", str(log), "--week-start", "2024-01-22", "--priority", "Biology=1"],
        env={"COLUMNS": "200"},
    )
    assert result.exit_code == 0, result.output
    assert result.output.count("Biology") >= 7
    assert "2024-01-28" in result.output


def test_history_command_and_missing_file(tmp_path):
    log = _write_log(tmp_path / "sessions.jsonl")
    result = runner.invoke(schedule_cli.app, ["history", "--history", str(log)])
    assert result.exit_code == 0, result.output
    assert "3 sessions" in result.output

    missing = runner.invoke(schedule_cli.app, ["history", "--history", str(tmp_path / "nope.jsonl")])
    assert missing.exit_code == 1
