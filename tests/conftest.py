"""runlens test configuration and fixtures."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from runlens.redaction import clear_registered_secrets  # noqa: E402
from runlens.run.models import Run, Step  # noqa: E402


@pytest.fixture(autouse=True)
def reset_runlens_logger():
    """Drop logging handlers and registered secrets so each test starts clean."""
    yield
    logger = logging.getLogger("runlens")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    clear_registered_secrets()


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def sample_fixture_path(fixtures_dir: Path) -> Path:
    """Return the path to sample_run.json."""
    return fixtures_dir / "runs" / "sample_run.json"


@pytest.fixture
def definitions_dir(fixtures_dir: Path) -> Path:
    return fixtures_dir / "definitions"


def make_run(start: int = 0, end: int = 10000, **kwargs: Any) -> Run:
    defaults = dict(
        run_id="run_test",
        thread_id="thread_test",
        assistant_id="asst_test",
        status="completed",
    )
    defaults.update(kwargs)
    return Run(started_at=start, completed_at=end, **defaults)


def make_step(
    start: int,
    end: Optional[int],
    type: Optional[str] = "tool_calls",
    step_id: Optional[str] = None,
    details: Any = None,
) -> Step:
    return Step(
        step_id=step_id or f"step_{start}",
        type=type,
        status="completed" if end is not None else "in_progress",
        started_at=start,
        completed_at=end,
        details=details,
    )
