"""Offline fixtures: loading them, and generating them from YAML.

A fixture is a JSON document holding exactly what the two API calls return:

```json
{"run": {...thread.run...}, "steps": {"object": "list", "data": [...]}}
```

Fixtures can be written by hand, saved from a live fetch, or generated from a
compact YAML definition where steps are placed by offset and duration:

```yaml
run:
  id: run_abc
  thread_id: thread_abc
  created_at: 1700000000   # epoch seconds
  duration_ms: 10000       # omit for a run still in flight

steps:
  - type: tool_calls
    offset_ms: 0
    duration_ms: 3000
    details:
      type: tool_calls
      tool_calls: []
  - type: message_creation
    offset_ms: 5000
    duration_ms: 3000
```
"""
from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from runlens.api.client import DEFAULT_STEPS_LIMIT
from runlens.errors import ErrorCode, ProtocolError, RunLensError
from runlens.validation import validate_fixture_dict


class FixtureError(RunLensError):
    """A fixture file is missing, unreadable or does not match the schema."""

    code = ErrorCode.E200

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


@dataclass(frozen=True)
class Fixture:
    run: dict[str, Any]
    steps: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"run": self.run, "steps": self.steps}


def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def load_fixture(path: Path, validate: bool = True) -> Fixture:
    """Load a fixture file.

    Raises:
        FixtureError: If the file is missing, is not JSON, or fails validation.
    """
    path = Path(path)
    if not path.exists():
        raise FixtureError(str(path), code=ErrorCode.E301)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise FixtureError(f"{path}: {e}", code=ErrorCode.E302) from e
    except json.JSONDecodeError as e:
        raise FixtureError(f"{path}: invalid JSON: {e}") from e

    if validate:
        result = validate_fixture_dict(data, file_path=str(path))
        if not result.valid:
            raise FixtureError(result.summary())

    return Fixture(run=data["run"], steps=data["steps"])


class FixtureSource:
    """Answers ``get_run`` and ``list_steps`` from a fixture the way the API would.

    Backs ``fetch`` in dev-fixtures mode. Identifiers that do not match the
    fixture's run get the same 404 the API gives.
    """

    def __init__(self, fixture: Fixture) -> None:
        self.fixture = fixture

    @property
    def run_id(self) -> str:
        return self.fixture.run.get("id", "")

    @property
    def thread_id(self) -> str:
        return self.fixture.run.get("thread_id", "")

    def _check(self, label: str, thread_id: str, run_id: str) -> None:
        if (thread_id, run_id) != (self.thread_id, self.run_id):
            body = f"No run found with id '{run_id}' in thread '{thread_id}'."
            raise ProtocolError(
                f"{label} API request failed with status 404: {body}",
                status_code=404,
                body=body,
            )

    def get_run(self, thread_id: str, run_id: str) -> dict[str, Any]:
        self._check("Run", thread_id, run_id)
        return dict(self.fixture.run)

    def list_steps(self, thread_id: str, run_id: str, limit: int = DEFAULT_STEPS_LIMIT) -> dict[str, Any]:
        self._check("Steps", thread_id, run_id)
        data = list(self.fixture.steps.get("data", []))
        return {**self.fixture.steps, "data": data[:limit]}


def _seconds(base_s: int, offset_ms: int) -> int:
    # The API only has second resolution
    return base_s + round(offset_ms / 1000)


def _step_from_def(
    data: dict[str, Any],
    base_s: int,
    run: dict[str, Any],
) -> dict[str, Any]:
    offset_ms = int(data.get("offset_ms", 0))
    step_type = data.get("type", "message_creation")
    duration_ms = data.get("duration_ms")

    details = data.get("details")
    if details is None and step_type == "message_creation":
        details = {
            "type": "message_creation",
            "message_creation": {"message_id": generate_id("msg")},
        }

    return {
        "id": data.get("id") or generate_id("step"),
        "object": "thread.run.step",
        "created_at": _seconds(base_s, offset_ms),
        "run_id": run["id"],
        "thread_id": run["thread_id"],
        "assistant_id": run.get("assistant_id"),
        "type": step_type,
        "status": data.get("status") or ("in_progress" if duration_ms is None else "completed"),
        "completed_at": None if duration_ms is None else _seconds(base_s, offset_ms + int(duration_ms)),
        "step_details": details,
    }


def generate_fixture_from_yaml(yaml_content: str) -> Fixture:
    """Build a fixture from a YAML definition (see module docstring).

    Raises:
        FixtureError: If the document, ``run`` or a step is not a mapping,
            or ``steps`` is not a list.
    """
    definition = yaml.safe_load(yaml_content) or {}
    if not isinstance(definition, dict):
        raise FixtureError(f"definition must be a mapping, got {type(definition).__name__}")
    run_def = definition.get("run") or {}
    steps_def = definition.get("steps") or []
    if not isinstance(run_def, dict):
        raise FixtureError(f"run must be a mapping, got {type(run_def).__name__}")
    if not isinstance(steps_def, list) or not all(isinstance(s, dict) for s in steps_def):
        raise FixtureError("steps must be a list of mappings")
    try:
        return _fixture_from_def(run_def, steps_def)
    except (TypeError, ValueError) as e:
        raise FixtureError(f"invalid number in definition: {e}") from e


def _fixture_from_def(run_def: dict[str, Any], steps_def: list[dict[str, Any]]) -> Fixture:
    base_s = int(run_def.get("created_at", 1700000000))
    duration_ms = run_def.get("duration_ms")

    run = {
        "id": run_def.get("id") or generate_id("run"),
        "object": "thread.run",
        "thread_id": run_def.get("thread_id") or generate_id("thread"),
        "assistant_id": run_def.get("assistant_id") or generate_id("asst"),
        "status": run_def.get("status") or ("in_progress" if duration_ms is None else "completed"),
        "created_at": base_s,
        "completed_at": None if duration_ms is None else _seconds(base_s, int(duration_ms)),
    }

    steps = [_step_from_def(s, base_s, run) for s in steps_def]
    return Fixture(run=run, steps={"object": "list", "data": steps})


def generate_fixture_file(definition_path: Path, output_path: Path) -> Fixture:
    """Generate a fixture JSON file from a YAML definition file."""
    fixture = generate_fixture_from_yaml(Path(definition_path).read_text(encoding="utf-8"))
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(fixture.to_dict(), indent=2) + "\n", encoding="utf-8")
    return fixture
