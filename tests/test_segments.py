"""Tests for waterfall timeline reconstruction."""
from __future__ import annotations

from conftest import make_step

from runlens.timeline.segments import GAP_INDEX, GAP_LABEL, build_segments, sort_steps


def _spans(segments) -> list[tuple[str, int, int]]:
    return [(s.label, s.start_offset, s.end_offset) for s in segments]


def _assert_covers(segments, total: int) -> None:
    assert segments[0].start_offset == 0
    assert segments[-1].end_offset == total
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end_offset == nxt.start_offset


class TestBuildSegments:
    """Tests for build_segments."""

    def test_steps_with_gaps_between_and_after(self) -> None:
        steps = [
            make_step(0, 3000, type="a"),
            make_step(5000, 8000, type="b"),
        ]
        segments = build_segments(0, 10000, steps)

        assert _spans(segments) == [
            ("1. a", 0, 3000),
            (GAP_LABEL, 3000, 5000),
            ("2. b", 5000, 8000),
            (GAP_LABEL, 8000, 10000),
        ]
        assert [s.is_gap for s in segments] == [False, True, False, True]
        assert [s.source_index for s in segments] == [0, GAP_INDEX, 1, GAP_INDEX]
        _assert_covers(segments, 10000)

    def test_leading_gap(self) -> None:
        segments = build_segments(0, 5000, [make_step(2000, 5000, type="a")])

        assert _spans(segments) == [(GAP_LABEL, 0, 2000), ("1. a", 2000, 5000)]
        _assert_covers(segments, 5000)

    def test_offsets_relative_to_run_start(self) -> None:
        run_start = 1_700_000_000_000
        steps = [make_step(run_start + 1000, run_start + 4000, type="a")]
        segments = build_segments(run_start, run_start + 4000, steps)

        assert _spans(segments) == [(GAP_LABEL, 0, 1000), ("1. a", 1000, 4000)]

    def test_zero_steps_yields_empty_list(self) -> None:
        assert build_segments(0, 10000, []) == []

    def test_unsorted_input_is_sorted_by_start(self) -> None:
        steps = [
            make_step(5000, 8000, type="late"),
            make_step(0, 3000, type="early"),
        ]
        segments = build_segments(0, 8000, steps)

        assert [s.label for s in segments if not s.is_gap] == ["1. early", "2. late"]
        assert [s.source_index for s in segments if not s.is_gap] == [0, 1]

    def test_sort_is_stable_for_equal_starts(self) -> None:
        first = make_step(1000, 2000, type="first", step_id="s1")
        second = make_step(1000, 3000, type="second", step_id="s2")

        assert [s.step_id for s in sort_steps([first, second])] == ["s1", "s2"]
        assert [s.step_id for s in sort_steps([second, first])] == ["s2", "s1"]

    def test_running_step_extends_to_run_end(self) -> None:
        segments = build_segments(0, 9000, [make_step(1000, None, type="a")])

        assert _spans(segments) == [(GAP_LABEL, 0, 1000), ("1. a", 1000, 9000)]

    def test_missing_type_labelled_unknown(self) -> None:
        segments = build_segments(0, 1000, [make_step(0, 1000, type=None)])

        assert segments[0].label == "1. Unknown"

    def test_overlapping_steps_emitted_back_to_back(self) -> None:
        steps = [
            make_step(0, 5000, type="a"),
            make_step(2000, 4000, type="b"),
            make_step(6000, 7000, type="c"),
        ]
        segments = build_segments(0, 8000, steps)

        assert _spans(segments) == [
            ("1. a", 0, 5000),
            ("2. b", 2000, 4000),
            # cursor stayed at 5000, not 4000
            (GAP_LABEL, 5000, 6000),
            ("3. c", 6000, 7000),
            (GAP_LABEL, 7000, 8000),
        ]

    def test_no_zero_length_gaps(self) -> None:
        steps = [
            make_step(0, 3000, type="a"),
            make_step(3000, 6000, type="b"),
        ]
        segments = build_segments(0, 6000, steps)

        assert not any(s.is_gap for s in segments)
        assert all(s.duration > 0 for s in segments)

    def test_negative_total_clamped(self) -> None:
        segments = build_segments(5000, 1000, [make_step(5000, 5000, type="a")])

        assert len(segments) == 1
        assert segments[0].duration == 0
        assert not any(s.is_gap for s in segments)

    def test_step_ending_before_start_clamped_to_zero(self) -> None:
        segments = build_segments(0, 4000, [make_step(2000, 1000, type="a")])

        step = [s for s in segments if not s.is_gap][0]
        assert step.duration == 0
        assert step.end_offset == step.start_offset

    def test_selected_index_marks_one_step(self) -> None:
        steps = [make_step(0, 1000), make_step(2000, 3000)]
        segments = build_segments(0, 4000, steps, selected_index=1)

        assert [s.source_index for s in segments if s.is_selected] == [1]

    def test_idempotent(self) -> None:
        steps = [
            make_step(4000, 5000, type="b"),
            make_step(0, 1000, type="a"),
            make_step(4000, 4500, type="c"),
        ]
        assert build_segments(0, 6000, steps) == build_segments(0, 6000, steps)

    def test_durations_match_offsets(self) -> None:
        steps = [make_step(500, 1500), make_step(2500, None)]
        for seg in build_segments(0, 4000, steps):
            assert seg.end_offset - seg.start_offset == seg.duration
