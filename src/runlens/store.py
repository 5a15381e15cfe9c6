"""Saved session: the last identifiers, credential and debug flag.

Stored as a small YAML mapping so the next invocation can pick up where the
previous one left off. Nothing in the timeline depends on it; a missing or
unreadable file simply loads as an empty session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

IDENTIFIER_KEYS = ("run_id", "thread_id", "assistant_id", "api_key")


@dataclass
class SavedSession:
    run_id: Optional[str] = None
    thread_id: Optional[str] = None
    assistant_id: Optional[str] = None
    api_key: Optional[str] = None
    debug_mode: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedSession:
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["debug_mode"] = bool(values.get("debug_mode", False))
        return cls(**values)


class SessionStore:
    """YAML-backed key-value store with explicit load / save / clear."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")

    def load(self) -> SavedSession:
        return SavedSession.from_dict(self._read())

    def save(self, session: SavedSession) -> None:
        """Persist non-empty identifiers; the debug flag is always written."""
        data = self._read()
        for key in IDENTIFIER_KEYS:
            value = getattr(session, key)
            if value:
                data[key] = value
        data["debug_mode"] = bool(session.debug_mode)
        self._write(data)

    def clear(self) -> None:
        """Forget identifiers and credential, keep the debug flag."""
        data = self._read()
        if not data:
            return
        for key in IDENTIFIER_KEYS:
            data.pop(key, None)
        self._write(data)
