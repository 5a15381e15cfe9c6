from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from runlens.run.models import Run, Step
from runlens.run.timestamps import first_timestamp, now_millis, to_millis
from runlens.timeline.segments import Segment, build_segments, sort_steps

# A run or step that stopped without completing still has an end time
END_FIELDS = ("completed_at", "failed_at", "cancelled_at", "expired_at")


@dataclass(frozen=True)
class RunView:
    """Everything a renderer needs for one fetched run."""

    run: Run
    steps: list[Step]
    segments: list[Segment] = field(default_factory=list)

    @property
    def total_duration(self) -> int:
        return self.run.total_duration


def run_from_api(
    raw: dict[str, Any],
    assistant_id: Optional[str] = None,
    now: Optional[int] = None,
) -> Run:
    """Normalize a run object from the API.

    ``assistant_id`` is used when the response does not name one; ``now``
    resolves the end of a run that has not finished.
    """
    started_at = to_millis(raw.get("created_at"), None)
    if started_at is None:
        started_at = now if now is not None else now_millis()
    fallback_end = now if now is not None else now_millis()
    completed_at = to_millis(first_timestamp(raw, END_FIELDS), fallback_end)

    return Run(
        run_id=raw.get("id") or "",
        thread_id=raw.get("thread_id") or "",
        assistant_id=raw.get("assistant_id") or assistant_id,
        status=raw.get("status") or "unknown",
        started_at=started_at,
        completed_at=max(completed_at, started_at),
    )


def step_from_api(raw: dict[str, Any]) -> Step:
    return Step(
        step_id=raw.get("id") or "",
        type=raw.get("type"),
        status=raw.get("status"),
        started_at=to_millis(raw.get("created_at"), 0),
        completed_at=to_millis(first_timestamp(raw, END_FIELDS), None),
        details=raw.get("step_details"),
        raw=raw,
    )


def steps_from_api(raw_list: Any) -> list[Step]:
    """Normalize a step list response (``{"data": [...]}``) or a bare list."""
    if isinstance(raw_list, dict):
        items = raw_list.get("data") or []
    else:
        items = raw_list or []
    return sort_steps([step_from_api(item) for item in items if isinstance(item, dict)])


def build_run_view(
    run: Run,
    steps: list[Step],
    selected_index: Optional[int] = None,
) -> RunView:
    ordered = sort_steps(steps)
    segments = build_segments(run.started_at, run.completed_at, ordered, selected_index)
    return RunView(run=run, steps=ordered, segments=segments)


def build_run_view_from_api(
    run_raw: dict[str, Any],
    steps_raw: Any,
    assistant_id: Optional[str] = None,
    now: Optional[int] = None,
) -> RunView:
    """One-shot: raw run + raw step list to a RunView."""
    run = run_from_api(run_raw, assistant_id=assistant_id, now=now)
    return build_run_view(run, steps_from_api(steps_raw))
