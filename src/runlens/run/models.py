from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Run:
    """A single assistant run with resolved millisecond bounds."""

    run_id: str
    thread_id: str
    assistant_id: Optional[str]
    status: str

    # Timing (epoch ms); completed_at is "now" for a run still in flight
    started_at: int
    completed_at: int

    @property
    def total_duration(self) -> int:
        return max(0, self.completed_at - self.started_at)


@dataclass(frozen=True)
class Step:
    """One unit of work inside a run."""

    step_id: str
    type: Optional[str]  # e.g. tool_calls, message_creation
    status: Optional[str]

    # Timing (epoch ms); completed_at None means still running
    started_at: int
    completed_at: Optional[int] = None

    # Opaque step_details payload, shape depends on type
    details: Any = None

    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_running(self) -> bool:
        return self.completed_at is None
