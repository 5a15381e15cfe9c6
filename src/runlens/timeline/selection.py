"""Selection state shared by the timeline and the step list."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from runlens.timeline.segments import GAP_INDEX, Segment

# Step bars cycle through this palette by position
PALETTE: tuple[str, ...] = ("#8884d8", "#82ca9d", "#ffc658", "#ff8042", "#0088fe")

HIGHLIGHT_COLOR = "#ff0000"


@dataclass(frozen=True)
class SegmentStyle:
    """Paint attributes for one timeline bar."""

    fill: str
    stroke: Optional[str] = None
    dasharray: Optional[str] = None
    label_color: str = "white"
    clickable: bool = True


GAP_STYLE = SegmentStyle(
    fill="#e0e0e0",
    stroke="#ccc",
    dasharray="3,2",
    label_color="#666",
    clickable=False,
)

FocusListener = Callable[[int], None]


def palette_color(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


class SelectionCoordinator:
    """Tracks the one selected step and tells listeners to bring it into view.

    Only step positions can be selected. Selecting replaces whatever was
    selected before; selecting the current step again keeps it selected.
    """

    def __init__(self, step_count: Optional[int] = None) -> None:
        self._selected: Optional[int] = None
        self._listeners: list[FocusListener] = []
        self.step_count = step_count

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected

    def subscribe(self, listener: FocusListener) -> None:
        """Register a callback receiving the index to scroll to / focus."""
        self._listeners.append(listener)

    def select(self, index: Optional[int]) -> bool:
        """Select a step by position.

        Returns:
            True if the selection was applied, False if the index was rejected
            (gap sentinel, negative, or past the last known step).
        """
        if index is None or index == GAP_INDEX or index < 0:
            return False
        if self.step_count is not None and index >= self.step_count:
            return False

        self._selected = index
        for listener in self._listeners:
            listener(index)
        return True

    def handle_click(self, segment: Segment) -> bool:
        """Entry point for a click on a timeline bar. Gaps are ignored."""
        if segment.is_gap:
            return False
        return self.select(segment.source_index)

    def clear(self) -> None:
        self._selected = None

    def is_selected(self, segment: Segment) -> bool:
        return (
            not segment.is_gap
            and self._selected is not None
            and segment.source_index == self._selected
        )

    def apply(self, segments: Sequence[Segment]) -> list[Segment]:
        """Return ``segments`` with ``is_selected`` matching the current state."""
        return [replace(s, is_selected=self.is_selected(s)) for s in segments]

    def style_for(self, segment: Segment) -> SegmentStyle:
        if segment.is_gap:
            return GAP_STYLE
        if self.is_selected(segment):
            return SegmentStyle(fill=HIGHLIGHT_COLOR)
        return SegmentStyle(fill=palette_color(segment.source_index))
