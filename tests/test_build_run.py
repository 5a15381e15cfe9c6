"""Tests for normalizing API records into a RunView."""
from __future__ import annotations

import json
from pathlib import Path

from conftest import make_run, make_step

from runlens.run.build_run import (
    build_run_view,
    build_run_view_from_api,
    run_from_api,
    step_from_api,
    steps_from_api,
)
from runlens.timeline.segments import GAP_LABEL

NOW = 1_700_000_100_000


class TestRunFromApi:
    """Tests for run_from_api."""

    def test_completed_run(self) -> None:
        run = run_from_api({
            "id": "run_1",
            "thread_id": "thread_1",
            "assistant_id": "asst_1",
            "status": "completed",
            "created_at": 1_700_000_000,
            "completed_at": 1_700_000_010,
        })

        assert run.run_id == "run_1"
        assert run.thread_id == "thread_1"
        assert run.assistant_id == "asst_1"
        assert run.started_at == 1_700_000_000_000
        assert run.completed_at == 1_700_000_010_000
        assert run.total_duration == 10_000

    def test_running_run_ends_now(self) -> None:
        run = run_from_api(
            {"id": "run_1", "created_at": 1_700_000_000, "completed_at": None},
            now=NOW,
        )

        assert run.completed_at == NOW

    def test_failed_run_uses_failed_at(self) -> None:
        run = run_from_api(
            {"id": "run_1", "created_at": 1_700_000_000, "failed_at": 1_700_000_004},
            now=NOW,
        )

        assert run.completed_at == 1_700_000_004_000

    def test_assistant_id_fallback(self) -> None:
        run = run_from_api({"id": "run_1", "created_at": 1}, assistant_id="asst_req", now=NOW)

        assert run.assistant_id == "asst_req"

    def test_response_assistant_id_preferred(self) -> None:
        run = run_from_api(
            {"id": "run_1", "created_at": 1, "completed_at": 2, "assistant_id": "asst_resp"},
            assistant_id="asst_req",
        )

        assert run.assistant_id == "asst_resp"

    def test_end_before_start_clamped(self) -> None:
        run = run_from_api({"id": "run_1", "created_at": 100, "completed_at": 50})

        assert run.completed_at == run.started_at
        assert run.total_duration == 0

    def test_missing_status(self) -> None:
        assert run_from_api({"created_at": 1, "completed_at": 2}).status == "unknown"


class TestStepsFromApi:
    """Tests for step normalization."""

    def test_step_fields(self) -> None:
        raw = {
            "id": "step_1",
            "type": "message_creation",
            "status": "completed",
            "created_at": 5,
            "completed_at": 8,
            "step_details": {"type": "message_creation", "message_creation": {"message_id": "m"}},
        }
        step = step_from_api(raw)

        assert step.step_id == "step_1"
        assert step.type == "message_creation"
        assert step.started_at == 5000
        assert step.completed_at == 8000
        assert step.details == raw["step_details"]
        assert step.raw is raw

    def test_running_step_has_no_end(self) -> None:
        step = step_from_api({"id": "s", "created_at": 5, "completed_at": None})

        assert step.completed_at is None
        assert step.is_running

    def test_cancelled_step_uses_cancelled_at(self) -> None:
        step = step_from_api({"id": "s", "created_at": 5, "cancelled_at": 6})

        assert step.completed_at == 6000

    def test_list_response_sorted(self) -> None:
        steps = steps_from_api({"data": [
            {"id": "late", "created_at": 9},
            {"id": "early", "created_at": 1},
        ]})

        assert [s.step_id for s in steps] == ["early", "late"]

    def test_bare_list_and_junk(self) -> None:
        steps = steps_from_api([{"id": "a", "created_at": 1}, "junk", None])

        assert [s.step_id for s in steps] == ["a"]

    def test_empty_responses(self) -> None:
        assert steps_from_api({"data": []}) == []
        assert steps_from_api({}) == []
        assert steps_from_api(None) == []


class TestBuildRunView:
    """Tests for building the full view."""

    def test_view_from_sample_fixture(self, sample_fixture_path: Path) -> None:
        data = json.loads(sample_fixture_path.read_text())
        view = build_run_view_from_api(data["run"], data["steps"])

        assert [s.step_id for s in view.steps] == ["step_tool001", "step_msg002"]
        assert [(s.label, s.start_offset, s.end_offset) for s in view.segments] == [
            ("1. tool_calls", 0, 3000),
            (GAP_LABEL, 3000, 5000),
            ("2. message_creation", 5000, 8000),
            (GAP_LABEL, 8000, 10000),
        ]
        assert view.total_duration == 10_000

    def test_steps_and_segments_share_positions(self) -> None:
        view = build_run_view(
            make_run(0, 6000),
            [make_step(3000, 4000, type="b", step_id="b"), make_step(0, 1000, type="a", step_id="a")],
        )

        for seg in view.segments:
            if not seg.is_gap:
                assert seg.label.endswith(view.steps[seg.source_index].type)

    def test_run_without_steps(self) -> None:
        view = build_run_view(make_run(0, 5000), [])

        assert view.steps == []
        assert view.segments == []
        assert view.total_duration == 5000
