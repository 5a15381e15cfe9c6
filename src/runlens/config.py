"""runlens configuration management.

Handles:
- Execution mode (live API, or dev-fixtures served from a fixture file)
- .env file loading with precedence: CLI > .env > env vars
- API settings (base URL, beta header, step limit, timeout)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from runlens.api.client import DEFAULT_API_BASE, DEFAULT_BETA_HEADER, DEFAULT_STEPS_LIMIT
from runlens.redaction import mask_secret


class Mode(str, Enum):
    """runlens execution mode."""

    DEV_FIXTURES = "dev-fixtures"
    LIVE = "live"


@dataclass
class ApiSettings:
    """Where and how to reach the Assistants API."""

    base_url: str = DEFAULT_API_BASE
    beta_header: str = DEFAULT_BETA_HEADER
    steps_limit: int = DEFAULT_STEPS_LIMIT
    timeout_seconds: float = 30.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApiSettings:
        return cls(
            base_url=data.get("base_url", DEFAULT_API_BASE),
            beta_header=data.get("beta_header", DEFAULT_BETA_HEADER),
            steps_limit=int(data.get("steps_limit", DEFAULT_STEPS_LIMIT)),
            timeout_seconds=float(data.get("timeout_seconds", 30.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "beta_header": self.beta_header,
            "steps_limit": self.steps_limit,
            "timeout_seconds": self.timeout_seconds,
        }


@dataclass
class Config:
    """runlens runtime configuration."""

    mode: Mode = Mode.LIVE
    api: ApiSettings = field(default_factory=ApiSettings)
    api_key: str | None = None
    thread_id: str | None = None
    run_id: str | None = None
    assistant_id: str | None = None
    debug: bool = False
    store_path: Path | None = None
    fixture_path: Path | None = None
    env_file_path: Path | None = None

    def is_live(self) -> bool:
        return self.mode == Mode.LIVE

    def is_dev_fixtures(self) -> bool:
        return self.mode == Mode.DEV_FIXTURES

    def to_display_dict(self) -> dict[str, Any]:
        """Configuration for printing, with the credential masked."""
        return {
            "mode": self.mode.value,
            "api": self.api.to_dict(),
            "api_key": mask_secret(self.api_key) or None,
            "thread_id": self.thread_id,
            "run_id": self.run_id,
            "assistant_id": self.assistant_id,
            "debug": self.debug,
            "store_path": str(self.store_path) if self.store_path else None,
            "fixture": str(self.fixture_path) if self.fixture_path else None,
            "env_file": str(self.env_file_path) if self.env_file_path else None,
        }


def parse_env_file(env_file: Path) -> dict[str, str]:
    """Parse a .env file into a dictionary.

    Supports:
    - KEY=value
    - KEY="quoted value"
    - KEY='single quoted'
    - export KEY=value
    - # comments
    - Empty lines
    """
    result: dict[str, str] = {}

    if not env_file.exists():
        return result

    for line in env_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()

        if not line or line.startswith("#"):
            continue

        if line.startswith("export "):
            line = line[7:]

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()

        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]

        result[key] = value

    return result


def _find_env_file(start: Path | None = None) -> Path | None:
    """Find .env file by walking up directory tree.

    Stops at git root, home directory, or filesystem root.
    """
    current = (start or Path.cwd()).resolve()

    try:
        home = Path.home()
    except RuntimeError:
        home = None

    for _ in range(20):
        env_file = current / ".env"
        if env_file.exists():
            return env_file

        if home and current == home:
            break
        if current == current.parent:
            break
        if (current / ".git").exists():
            break

        current = current.parent

    return None


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def default_store_path() -> Path:
    return Path.home() / ".config" / "runlens" / "session.yaml"


def load_config(
    mode: str | None = None,
    env_file: str | Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> Config:
    """Load configuration with precedence: CLI > .env > env vars.

    Args:
        mode: Explicit mode override (live or dev-fixtures)
        env_file: Path to .env file to load; discovered when omitted
        cli_overrides: Values from CLI flags (api_key, thread_id, run_id,
            assistant_id, debug, fixture); None values are ignored

    Raises:
        ValueError: If the mode is not a known Mode value
    """
    cli_overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    env_vars = dict(os.environ)

    env_file_path: Path | None
    if env_file:
        env_file_path = Path(env_file)
    else:
        env_file_path = _find_env_file()
    if env_file_path and env_file_path.exists():
        env_vars.update(parse_env_file(env_file_path))
    else:
        env_file_path = None

    if mode:
        resolved_mode = Mode(mode)
    elif env_vars.get("RUNLENS_MODE"):
        resolved_mode = Mode(env_vars["RUNLENS_MODE"])
    else:
        resolved_mode = Mode.LIVE

    api = ApiSettings(
        base_url=env_vars.get("RUNLENS_API_BASE") or DEFAULT_API_BASE,
        beta_header=env_vars.get("RUNLENS_BETA_HEADER") or DEFAULT_BETA_HEADER,
        steps_limit=int(env_vars.get("RUNLENS_STEPS_LIMIT") or DEFAULT_STEPS_LIMIT),
        timeout_seconds=float(env_vars.get("RUNLENS_TIMEOUT_SECONDS") or 30),
    )

    store_path_str = env_vars.get("RUNLENS_STORE_PATH")
    store_path = Path(store_path_str) if store_path_str else default_store_path()
    fixture_str = cli_overrides.get("fixture") or env_vars.get("RUNLENS_FIXTURE")

    return Config(
        mode=resolved_mode,
        api=api,
        api_key=cli_overrides.get("api_key")
        or env_vars.get("RUNLENS_API_KEY")
        or env_vars.get("OPENAI_API_KEY")
        or None,
        thread_id=cli_overrides.get("thread_id") or env_vars.get("RUNLENS_THREAD_ID") or None,
        run_id=cli_overrides.get("run_id") or env_vars.get("RUNLENS_RUN_ID") or None,
        assistant_id=cli_overrides.get("assistant_id")
        or env_vars.get("RUNLENS_ASSISTANT_ID")
        or None,
        debug=bool(cli_overrides.get("debug")) or _parse_bool(env_vars.get("RUNLENS_DEBUG")),
        store_path=store_path,
        fixture_path=Path(fixture_str) if fixture_str else None,
        env_file_path=env_file_path,
    )
