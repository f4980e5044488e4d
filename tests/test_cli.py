"""Tests for the command-line interface."""

import json
from datetime import date

import pytest
from click.testing import CliRunner

from adaptive_training.cli import cli


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def plan_request(tmp_path):
    return write_json(tmp_path / "request.json", {
        "profile": {"fitness_level": "intermediate", "age": 35},
        "fatigue_scores": [30, 35, 40],
        "recovery": {"body_battery": 75, "sleep_score": 80},
    })


class TestCli:
    """Test CLI commands end to end."""

    def test_catalog(self, runner):
        result = runner.invoke(cli, ["catalog"])
        assert result.exit_code == 0
        assert "Workout Catalog" in result.output
        assert "run-zone2" in result.output

    def test_readiness(self, runner, tmp_path):
        path = write_json(tmp_path / "readiness.json", {
            "fatigue_scores": [80] * 7,
            "recent_workouts": [
                {"date": f"2024-06-0{day}", "training_load": 400, "fatigue": 90} for day in range(1, 5)
            ],
            "recovery": {"body_battery": 25, "sleep_score": 25},
        })
        result = runner.invoke(cli, ["readiness", "--input", path, "--today", "2024-06-05"])
        assert result.exit_code == 0
        assert "20/100" in result.output

    def test_plan_exports_and_match(self, runner, tmp_path, plan_request):
        csv_path = tmp_path / "plan.csv"
        output_path = tmp_path / "plan.json"
        result = runner.invoke(cli, [
            "plan", "--input", plan_request, "--start", "2024-06-03", "--seed", "7",
            "--csv", str(csv_path), "--output", str(output_path),
        ])
        assert result.exit_code == 0, result.output

        lines = csv_path.read_text(encoding="utf-8").strip().splitlines()
        assert lines[0] == "Date,Workout Type,Description,Duration (min),Expected Fatigue"
        assert len(lines) == 8

        workouts = json.loads(output_path.read_text(encoding="utf-8"))["workouts"]
        assert len(workouts) == 7
        assert workouts[0]["date"] == "2024-06-03"

        first = workouts[0]
        activity = write_json(tmp_path / "activity.json", {
            "date": first["date"],
            "sport": first["sport"],
            "duration_min": first["duration_min"],
        })
        result = runner.invoke(cli, ["match", "--activity", activity, "--plan", str(output_path)])
        assert result.exit_code == 0, result.output
        assert "Auto-match" in result.output

    def test_plan_is_reproducible_with_seed(self, runner, tmp_path, plan_request):
        outputs = []
        for name in ("a.json", "b.json"):
            path = tmp_path / name
            result = runner.invoke(cli, [
                "plan", "--input", plan_request, "--start", "2024-06-03", "--seed", "11",
                "--output", str(path),
            ])
            assert result.exit_code == 0, result.output
            outputs.append(json.loads(path.read_text(encoding="utf-8")))
        assert outputs[0] == outputs[1]

    def test_match_without_candidates(self, runner, tmp_path):
        activity = write_json(tmp_path / "activity.json", {"date": "2024-07-01", "sport": "run", "duration_min": 40})
        plan = write_json(tmp_path / "plan.json", [
            {"date": "2024-06-03", "sport": "run", "expected_fatigue": 45, "duration_min": 45},
        ])
        result = runner.invoke(cli, ["match", "--activity", activity, "--plan", plan])
        assert result.exit_code == 0
        assert "No planned workouts" in result.output

    def test_compare(self, runner, tmp_path):
        activity = write_json(tmp_path / "activity.json", {
            "date": "2024-06-04", "sport": "run", "duration_min": 47, "training_load": 225,
            "zone_minutes": [9, 27, 9, 0, 0],
        })
        planned = write_json(tmp_path / "planned.json", {
            "date": "2024-06-04", "sport": "run", "expected_fatigue": 45, "duration_min": 45,
        })
        result = runner.invoke(cli, ["compare", "--activity", activity, "--planned", planned])
        assert result.exit_code == 0
        assert "Adherence 99/100" in result.output
        assert "Duration matched plan perfectly" in result.output

    def test_malformed_json(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(cli, ["readiness", "--input", str(path)])
        assert result.exit_code == 1
        assert "Malformed JSON" in result.output

    def test_unknown_fitness_level(self, runner, tmp_path):
        path = write_json(tmp_path / "request.json", {"profile": {"fitness_level": "elite"}})
        result = runner.invoke(cli, ["plan", "--input", path, "--start", "2024-06-03"])
        assert result.exit_code == 1
        assert "Unknown fitness level" in result.output

    def test_unknown_excluded_category(self, runner, plan_request):
        result = runner.invoke(cli, ["plan", "--input", plan_request, "--exclude", "rowing"])
        assert result.exit_code == 1
        assert "Unknown exercise category" in result.output

    def test_invalid_plan_length(self, runner, plan_request):
        result = runner.invoke(cli, ["plan", "--input", plan_request, "--days", "0"])
        assert result.exit_code == 2

    def test_invalid_scoring_profile_reported(self, runner, monkeypatch):
        from adaptive_training.config import Config

        monkeypatch.setattr(Config, "MATCH_SCORING_PROFILE", "Compact")
        result = runner.invoke(cli, ["catalog"])
        assert result.exit_code == 1
        assert "Configuration Error" in result.output
        assert "MATCH_SCORING_PROFILE" in result.output

    def test_plan_save(self, runner, tmp_path, plan_request, monkeypatch):
        from adaptive_training.config import config
        from adaptive_training.db import Database, WorkoutStore

        url = f"sqlite:///{tmp_path / 'plans.db'}"
        monkeypatch.setattr(config, "DATABASE_URL", url)
        result = runner.invoke(cli, [
            "plan", "--input", plan_request, "--start", "2024-06-03", "--seed", "3",
            "--save", "--user-id", "athlete-1",
        ])
        assert result.exit_code == 0, result.output
        assert "Generated 7 planned workouts" in result.output

        db = Database(url)
        stored = WorkoutStore(db).query("athlete-1", date(2024, 6, 3), date(2024, 6, 9))
        db.close()
        assert len(stored) == 7

    def test_plan_save_requires_user(self, runner, tmp_path, plan_request, monkeypatch):
        from adaptive_training.config import config

        monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{tmp_path / 'plans.db'}")
        result = runner.invoke(cli, ["plan", "--input", plan_request, "--save"])
        assert result.exit_code == 1
        assert "User not authenticated" in result.output

    def test_adjust_to_rest(self, runner, tmp_path):
        plan = write_json(tmp_path / "plan.json", {"workouts": [
            {"date": "2024-06-03", "sport": "run", "description": "Tempo run", "expected_fatigue": 65,
             "duration_min": 30},
            {"date": "2024-06-04", "sport": "bike", "description": "Aerobic ride", "expected_fatigue": 45,
             "duration_min": 45},
        ]})
        output = tmp_path / "adjusted.json"
        result = runner.invoke(cli, [
            "adjust", "--plan", plan, "--date", "2024-06-03", "--change", "change-to-rest",
            "--output", str(output),
        ])
        assert result.exit_code == 0, result.output
        assert "Ensure adequate nutrition" in result.output

        workouts = json.loads(output.read_text(encoding="utf-8"))["workouts"]
        assert workouts[0]["sport"] == "rest"
        assert workouts[1]["expected_fatigue"] == 60
        assert workouts[1]["description"] == "Aerobic ride (adjusted for load redistribution)"

    def test_adjust_missing_value(self, runner, tmp_path):
        plan = write_json(tmp_path / "plan.json", [
            {"date": "2024-06-03", "sport": "run", "expected_fatigue": 45, "duration_min": 45},
        ])
        result = runner.invoke(cli, [
            "adjust", "--plan", plan, "--date", "2024-06-03", "--change", "change-workout-type",
        ])
        assert result.exit_code == 1
        assert "New workout type must be specified" in result.output
