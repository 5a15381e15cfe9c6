"""Waterfall timeline reconstruction.

Turns the steps of a run into an ordered list of segments covering the whole
run: one segment per step, plus synthetic gap segments for the idle time
before, between and after steps.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from runlens.run.models import Step

# source_index carried by gap segments
GAP_INDEX = -1

GAP_LABEL = "<unknown>"


@dataclass(frozen=True)
class Segment:
    """One interval of the timeline, offsets in ms from run start."""

    label: str
    start_offset: int
    duration: int
    end_offset: int
    source_index: int
    is_gap: bool = False
    is_selected: bool = False


def sort_steps(steps: Sequence[Step]) -> list[Step]:
    """Stable sort by normalized start time.

    The API does not promise any ordering of the step list, so every consumer
    that indexes steps by position goes through this.
    """
    return sorted(steps, key=lambda s: s.started_at)


def _gap(start: int, end: int) -> Segment:
    return Segment(
        label=GAP_LABEL,
        start_offset=start,
        duration=end - start,
        end_offset=end,
        source_index=GAP_INDEX,
        is_gap=True,
    )


def step_label(position: int, step: Step) -> str:
    return f"{position + 1}. {step.type or 'Unknown'}"


def build_segments(
    run_start: int,
    run_end: int,
    steps: Sequence[Step],
    selected_index: Optional[int] = None,
) -> list[Segment]:
    """Build the segment sequence for one run.

    Overlapping steps are emitted back to back as they come: no gap precedes
    a step starting before the cursor, and the cursor never moves backward.
    A step without an end time runs until the end of the run.

    Args:
        run_start: Run start (epoch ms).
        run_end: Resolved run end (epoch ms).
        steps: Normalized steps, in any order.
        selected_index: Position of the selected step, if any.

    Returns:
        Segments ordered by start offset; empty when there are no steps.
    """
    if not steps:
        return []

    total = max(0, run_end - run_start)
    segments: list[Segment] = []
    cursor = 0

    for i, step in enumerate(sort_steps(steps)):
        rel_start = step.started_at - run_start
        if step.completed_at is None:
            rel_end = total
        else:
            rel_end = step.completed_at - run_start

        if rel_start > cursor:
            segments.append(_gap(cursor, rel_start))

        duration = max(0, rel_end - rel_start)
        segments.append(
            Segment(
                label=step_label(i, step),
                start_offset=rel_start,
                duration=duration,
                end_offset=rel_start + duration,
                source_index=i,
                is_selected=selected_index == i,
            )
        )
        cursor = max(cursor, rel_start + duration)

    if cursor < total:
        segments.append(_gap(cursor, total))

    return segments
