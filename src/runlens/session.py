"""Fetch coordination: validate, retrieve run then steps, apply the result.

A ``RunSession`` owns the current ``RunView`` and the selection. Each fetch
takes a generation number when it begins; a result is only applied if no
newer fetch has begun since, so a slow response can never overwrite a more
recent one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from runlens.api.client import DEFAULT_STEPS_LIMIT, DebugInfo
from runlens.errors import InputValidationError, RunLensError
from runlens.run.build_run import RunView, build_run_view, run_from_api, steps_from_api
from runlens.timeline.selection import SelectionCoordinator

logger = logging.getLogger(__name__)


class RunSource(Protocol):
    def get_run(self, thread_id: str, run_id: str) -> dict[str, Any]: ...

    def list_steps(self, thread_id: str, run_id: str, limit: int = ...) -> dict[str, Any]: ...


@dataclass(frozen=True)
class FetchRequest:
    thread_id: Optional[str]
    run_id: Optional[str]
    api_key: Optional[str]
    assistant_id: Optional[str] = None

    def validate(self) -> None:
        if not self.run_id or not self.thread_id or not self.api_key:
            raise InputValidationError("Run ID, Thread ID, and API Key are required")


@dataclass
class FetchOutcome:
    generation: int
    view: Optional[RunView] = None
    error: Optional[str] = None
    applied: bool = False
    debug: Optional[DebugInfo] = None
    exception: Optional[RunLensError] = None

    @property
    def ok(self) -> bool:
        return self.view is not None and self.error is None

    def fail(self, what: str, error: RunLensError) -> "FetchOutcome":
        self.error = f"Error: Error fetching {what}: {error.message or 'Network error'}"
        self.exception = error
        return self


ViewListener = Callable[[RunView], None]


class RunSession:
    """Holds the latest fetched run and the step selection."""

    def __init__(
        self,
        selection: Optional[SelectionCoordinator] = None,
        steps_limit: int = DEFAULT_STEPS_LIMIT,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.selection = selection or SelectionCoordinator()
        self.steps_limit = steps_limit
        self._clock = clock
        self._generation = 0
        self._view: Optional[RunView] = None
        self._listeners: list[ViewListener] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def view(self) -> Optional[RunView]:
        """Current view with segments reflecting the current selection."""
        if self._view is None:
            return None
        return RunView(
            run=self._view.run,
            steps=self._view.steps,
            segments=self.selection.apply(self._view.segments),
        )

    def on_fetch_completed(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def begin(self) -> int:
        """Start a new fetch: bump the generation and drop the selection."""
        self._generation += 1
        self.selection.clear()
        return self._generation

    def apply(self, generation: int, view: RunView) -> bool:
        """Install ``view`` if it belongs to the latest fetch."""
        if generation != self._generation:
            logger.debug(
                "Discarding stale result (generation %d, latest %d)",
                generation,
                self._generation,
            )
            return False

        self._view = view
        self.selection.step_count = len(view.steps)
        for listener in self._listeners:
            listener(view)
        return True

    def load(self, run_raw: dict[str, Any], steps_raw: Any, assistant_id: Optional[str] = None) -> RunView:
        """Apply already-retrieved records (offline fixtures)."""
        generation = self.begin()
        view = self._build(run_raw, steps_raw, assistant_id)
        self.apply(generation, view)
        return view

    def _build(self, run_raw: dict[str, Any], steps_raw: Any, assistant_id: Optional[str]) -> RunView:
        now = self._clock() if self._clock else None
        run = run_from_api(run_raw, assistant_id=assistant_id, now=now)
        return build_run_view(run, steps_from_api(steps_raw))

    def fetch(
        self,
        request: FetchRequest,
        source: RunSource,
        debug: Optional[DebugInfo] = None,
    ) -> FetchOutcome:
        """Retrieve the run, then its steps, and apply the result.

        Every failure is converted into ``FetchOutcome.error``; validation
        failures happen before any request and leave the session untouched.
        """
        try:
            request.validate()
        except InputValidationError as e:
            return FetchOutcome(generation=self._generation, error=e.message, exception=e)

        generation = self.begin()
        outcome = FetchOutcome(generation=generation, debug=debug)
        now = self._clock() if self._clock else None

        try:
            run_raw = source.get_run(request.thread_id, request.run_id)
            if not isinstance(run_raw, dict):
                outcome.error = f"Error: Error fetching run details: unexpected response {run_raw!r}"
                return outcome
            run = run_from_api(run_raw, assistant_id=request.assistant_id, now=now)
        except RunLensError as e:
            return outcome.fail("run details", e)

        # The run response is authoritative for the identifiers
        thread_id = run_raw.get("thread_id") or request.thread_id
        run_id = run_raw.get("id") or request.run_id
        try:
            steps = steps_from_api(source.list_steps(thread_id, run_id, limit=self.steps_limit))
        except RunLensError as e:
            return outcome.fail("run steps", e)

        outcome.view = build_run_view(run, steps)
        outcome.applied = self.apply(generation, outcome.view)
        return outcome
