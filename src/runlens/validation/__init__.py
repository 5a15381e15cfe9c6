"""Schema validation for runlens fixture files.

A fixture is ``{"run": <run object>, "steps": {"data": [<step>, ...]}}``,
the two API responses as returned. Only the fields the timeline reads are
constrained; everything else passes through.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import jsonschema

SCHEMA_DIR = Path(__file__).parent.parent / "schemas"
FIXTURE_SCHEMA = "runlens.fixture.schema.json"


@dataclass
class ValidationError:
    path: str
    message: str


@dataclass
class ValidationResult:
    """Outcome of validating one fixture."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    file_path: str = ""

    @classmethod
    def failure(cls, file_path: str, message: str, path: str = "$") -> "ValidationResult":
        return cls(valid=False, errors=[ValidationError(path=path, message=message)], file_path=file_path)

    def summary(self) -> str:
        if self.valid:
            return f"✓ {self.file_path}: Valid"
        header = f"✗ {self.file_path}: {len(self.errors)} error(s)"
        return "\n".join([header, *(f"  {e.path} - {e.message}" for e in self.errors)])


@lru_cache(maxsize=None)
def _fixture_validator() -> jsonschema.Draft202012Validator:
    schema = json.loads((SCHEMA_DIR / FIXTURE_SCHEMA).read_text(encoding="utf-8"))
    return jsonschema.Draft202012Validator(schema)


def _format_path(path: Iterable[Any]) -> str:
    """``["steps", "data", 2, "id"]`` -> ``$.steps.data[2].id``."""
    return "$" + "".join(f"[{p}]" if isinstance(p, int) else f".{p}" for p in path)


def validate_fixture_dict(data: Any, file_path: str = "<dict>") -> ValidationResult:
    """Validate a fixture document (run + steps) against the fixture schema."""
    try:
        validator = _fixture_validator()
    except FileNotFoundError as e:
        return ValidationResult.failure(file_path, f"Schema not found: {e.filename}")

    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    return ValidationResult(
        valid=not errors,
        errors=[ValidationError(path=_format_path(e.absolute_path), message=e.message) for e in errors],
        file_path=file_path,
    )


def validate_fixture(fixture_path: str | Path) -> ValidationResult:
    """Validate a fixture JSON file on disk."""
    fixture_path = Path(fixture_path)
    name = str(fixture_path)

    if not fixture_path.exists():
        return ValidationResult.failure(name, f"File not found: {fixture_path}")
    try:
        data = json.loads(fixture_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        return ValidationResult.failure(name, f"Invalid JSON: {e}")
    except OSError as e:
        return ValidationResult.failure(name, f"Cannot read file: {e}")

    return validate_fixture_dict(data, file_path=name)
