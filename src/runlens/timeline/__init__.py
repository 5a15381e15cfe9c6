"""Timeline reconstruction, duration formatting and selection."""
from runlens.timeline.duration import format_clock, format_duration
from runlens.timeline.segments import GAP_INDEX, Segment, build_segments
from runlens.timeline.selection import SelectionCoordinator

__all__ = [
    "GAP_INDEX",
    "Segment",
    "SelectionCoordinator",
    "build_segments",
    "format_clock",
    "format_duration",
]
