"""Tests for fixture schema validation."""
from __future__ import annotations

import json
from pathlib import Path

from runlens.validation import _format_path, validate_fixture, validate_fixture_dict


class TestValidateFixture:
    """Tests for validate_fixture."""

    def test_sample_fixture_is_valid(self, sample_fixture_path: Path) -> None:
        result = validate_fixture(sample_fixture_path)

        assert result.valid, result.summary()
        assert result.summary().endswith(": Valid")

    def test_in_progress_fixture_is_valid(self, fixtures_dir: Path) -> None:
        result = validate_fixture(fixtures_dir / "runs" / "in_progress_run.json")
        assert result.valid, result.summary()

    def test_invalid_fixture_reports_paths(self, fixtures_dir: Path) -> None:
        result = validate_fixture(fixtures_dir / "runs" / "invalid_run.json")

        assert not result.valid
        paths = {e.path for e in result.errors}
        assert "$.run" in paths
        assert "$.run.created_at" in paths
        assert "$.steps.data[0]" in paths
        assert f"{len(result.errors)} error(s)" in result.summary()

    def test_missing_file(self, tmp_path: Path) -> None:
        result = validate_fixture(tmp_path / "missing.json")

        assert not result.valid
        assert "File not found" in result.errors[0].message

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = validate_fixture(path)

        assert not result.valid
        assert result.errors[0].message.startswith("Invalid JSON")


class TestValidateFixtureDict:
    """Tests for validate_fixture_dict."""

    def test_minimal_document(self) -> None:
        data = {
            "run": {"id": "run_1", "thread_id": "thread_1", "created_at": 1},
            "steps": {"data": []},
        }
        assert validate_fixture_dict(data).valid

    def test_missing_top_level_keys(self) -> None:
        result = validate_fixture_dict({})

        assert not result.valid
        assert {e.path for e in result.errors} == {"$"}

    def test_null_end_timestamps_allowed(self) -> None:
        data = {
            "run": {"id": "run_1", "thread_id": "thread_1", "created_at": 1, "completed_at": None},
            "steps": {"data": [{"id": "s", "created_at": 1, "completed_at": None}]},
        }
        assert validate_fixture_dict(data).valid

    def test_sample_round_trips_through_json(self, sample_fixture_path: Path) -> None:
        data = json.loads(sample_fixture_path.read_text())
        assert validate_fixture_dict(data, file_path="sample").file_path == "sample"


def test_format_path() -> None:
    assert _format_path([]) == "$"
    assert _format_path(["steps", "data", 2, "id"]) == "$.steps.data[2].id"
