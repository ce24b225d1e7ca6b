"""
Tests for the command line interface.
"""

import json

import pytest

from lifepath import __version__
from lifepath.app import main


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run from an empty directory with no LIFEPATH_* settings."""
    for name in ("LIFEPATH_DB_PATH", "LIFEPATH_TASK_SERVICE_URL", "LIFEPATH_TOP_N", "LIFEPATH_MAX_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def tasks_file(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps([
        {"taskId": "cv", "description": "Update CV", "estimatedHours": 4, "priority": "high"},
        {"taskId": "cert", "description": "AWS certification", "estimatedHours": 15, "dependencies": ["cv"]},
    ]))
    return path


def run_json(capsys, argv):
    main(argv)
    return json.loads(capsys.readouterr().out)


class TestValidateCommand:
    def test_valid_profile(self, capsys, profile_file):
        main(["validate", "--input", str(profile_file)])
        assert capsys.readouterr().out.strip() == "Valid"

    def test_invalid_profile(self, capsys, tmp_path, profile_json):
        profile_json["skills"][0]["level"] = 11
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps(profile_json))

        with pytest.raises(SystemExit) as excinfo:
            main(["validate", "--input", str(bad)])
        assert excinfo.value.code == 2
        out = capsys.readouterr().out
        assert out.startswith("Invalid:")
        assert "skills.0.level" in out

    def test_missing_file(self, tmp_path):
        with pytest.raises(SystemExit, match="Input file not found"):
            main(["validate", "--input", str(tmp_path / "nope.json")])


class TestEngineCommands:
    def test_version(self, capsys):
        main(["--version"])
        assert capsys.readouterr().out.strip() == __version__

    def test_score(self, capsys, profile_file):
        ranked = run_json(capsys, ["score", "--input", str(profile_file)])
        assert [b["pathId"] for b in ranked] == ["cloud-engineer", "ml-masters", "saas-startup"]
        assert ranked[0]["totalScore"] == 93.33
        assert ranked[0]["trace"]["steps"][-1]["rule"] == "total_score"

    def test_score_with_bad_weights(self, tmp_path, profile_file):
        weights = tmp_path / "weights.json"
        weights.write_text(json.dumps({"skillMatch": 0.9, "resourceFit": 0.9}))
        with pytest.raises(SystemExit) as excinfo:
            main(["score", "--input", str(profile_file), "--weights", str(weights)])
        assert excinfo.value.code == 2

    def test_score_with_malformed_config(self, tmp_path, profile_file):
        config = tmp_path / "engine.json"
        config.write_text(json.dumps({"simulation": {"base_success_rates": {"career": 1.5}}}))
        with pytest.raises(SystemExit) as excinfo:
            main(["score", "--input", str(profile_file), "--config", str(config)])
        assert excinfo.value.code == 2

    def test_simulate(self, capsys, profile_file):
        result = run_json(capsys, ["simulate", "--input", str(profile_file), "--path-id", "ml-masters"])
        assert result["successProbability"] == 0.4
        assert [m["name"] for m in result["timeline"]["milestones"]] == [
            "Enrolled", "Midpoint review", "Credential earned",
        ]

    def test_unknown_path(self, profile_file):
        with pytest.raises(SystemExit, match="Path not found"):
            main(["simulate", "--input", str(profile_file), "--path-id", "astronaut"])

    def test_roadmap(self, capsys, profile_file, tasks_file):
        roadmap = run_json(capsys, [
            "roadmap", "--input", str(profile_file), "--path-id", "cloud-engineer",
            "--tasks", str(tasks_file), "--start", "2026-01-05", "--hours", "10",
        ])
        assert roadmap["weeklyBudgetHours"] == 10
        weeks = roadmap["weeks"]
        assert weeks[0]["startDate"] == "2026-01-05"
        assert [t["taskId"] for t in weeks[0]["tasks"]] == ["cv"]
        assert [t["taskId"] for t in weeks[1]["tasks"]] == ["cert"]
        assert weeks[1]["startDate"] == "2026-01-12"
        assert roadmap["warnings"] == [
            "Task 'cert' needs 15h, over the weekly budget of 10h; scheduled alone in week 2"
        ]

    def test_roadmap_with_cycle(self, tmp_path, profile_file):
        tasks = tmp_path / "cycle.json"
        tasks.write_text(json.dumps([
            {"taskId": "a", "estimatedHours": 1, "dependencies": ["b"]},
            {"taskId": "b", "estimatedHours": 1, "dependencies": ["a"]},
        ]))
        with pytest.raises(SystemExit) as excinfo:
            main(["roadmap", "--input", str(profile_file), "--path-id", "cloud-engineer", "--tasks", str(tasks)])
        assert excinfo.value.code == 3

    def test_bad_start_date(self, profile_file):
        with pytest.raises(SystemExit, match="Invalid date"):
            main(["roadmap", "--input", str(profile_file), "--path-id", "cloud-engineer", "--start", "05/01/2026"])


class TestAnalyzeCommand:
    def test_analyze_with_tasks(self, capsys, profile_file, tasks_file):
        result = run_json(capsys, [
            "analyze", "--input", str(profile_file), "--tasks", str(tasks_file),
            "--top-n", "2", "--start", "2026-01-05",
        ])
        assert result["degraded"] is False
        assert len(result["rankedPaths"]) == 3
        assert [s["pathId"] for s in result["simulations"]] == ["cloud-engineer", "ml-masters"]
        assert result["roadmap"]["pathId"] == "cloud-engineer"

    def test_analyze_without_generator_is_degraded(self, capsys, profile_file):
        result = run_json(capsys, ["analyze", "--input", str(profile_file)])
        assert result["degraded"] is True
        assert result["roadmap"] is None
        assert len(result["simulations"]) == 3

    def test_analyze_needs_a_profile(self):
        with pytest.raises(SystemExit, match="--input or --profile-id"):
            main(["analyze"])


class TestStoreCommands:
    def test_save_list_and_analyze_stored(self, capsys, tmp_path, profile_file, tasks_file):
        db = str(tmp_path / "profiles.db")

        main(["save", "--input", str(profile_file), "--db", db])
        assert capsys.readouterr().out.strip() == "Profile: p-1"

        main(["list", "--owner", "owner-1", "--db", db])
        out = capsys.readouterr().out
        assert "Found 1 profiles for owner-1" in out
        assert "Paths: saas-startup, cloud-engineer, ml-masters" in out

        result = run_json(capsys, ["analyze", "--profile-id", "p-1", "--db", db, "--tasks", str(tasks_file)])
        assert result["profileId"] == "p-1"
        assert result["roadmap"] is not None

    def test_analyze_unknown_stored_profile(self, tmp_path):
        db = str(tmp_path / "profiles.db")
        with pytest.raises(SystemExit, match="Profile not found"):
            main(["analyze", "--profile-id", "ghost", "--db", db])

    def test_list_without_store(self, capsys, tmp_path):
        main(["list", "--owner", "owner-1", "--db", str(tmp_path / "missing.db")])
        assert "Store not found" in capsys.readouterr().out
