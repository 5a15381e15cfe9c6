"""Redaction for credentials and tokens.

Debug records and written artifacts may contain request headers and raw API
responses. Three things are scrubbed:
- API keys that look like keys (sk-..., sess-...) and bearer tokens
- values stored under sensitive keys such as ``api_key`` or ``Authorization``
- any secret registered with :func:`register_secret`, wherever it appears
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Pattern

KEY_REDACTED = "[API_KEY_REDACTED]"
VALUE_REDACTED = "[REDACTED]"

# (pattern, replacement), applied in order
TOKEN_PATTERNS: tuple[tuple[Pattern[str], str], ...] = (
    (re.compile(r"\bBearer\s+[A-Za-z0-9._\-]{8,}"), f"Bearer {KEY_REDACTED}"),
    (re.compile(r"\b(?:sk|sess)-[A-Za-z0-9_\-]{16,}\b"), KEY_REDACTED),
)

SENSITIVE_KEYS = frozenset({
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "openai-api-key",
    "password",
    "secret",
    "token",
    "access_token",
})

# Secrets seen at runtime (the key a fetch was made with)
_registered_secrets: set[str] = set()


def register_secret(secret: Optional[str]) -> None:
    """Scrub ``secret`` verbatim from everything redacted from now on."""
    if secret and len(secret) >= 8:
        _registered_secrets.add(secret)


def clear_registered_secrets() -> None:
    _registered_secrets.clear()


@dataclass
class RedactionConfig:
    """Configuration for redaction behavior."""

    enabled: bool = True
    sensitive_keys: frozenset[str] = SENSITIVE_KEYS
    extra_secrets: set[str] = field(default_factory=set)


def mask_secret(secret: Optional[str], keep: int = 3) -> str:
    """Show only the first and last ``keep`` characters: ``sk-...xyz``."""
    if not secret:
        return ""
    if len(secret) <= keep * 2:
        return "*" * len(secret)
    return f"{secret[:keep]}...{secret[-keep:]}"


def _is_masked(value: str) -> bool:
    return "..." in value and len(value) < 40


class Redactor:
    def __init__(self, config: Optional[RedactionConfig] = None) -> None:
        self.config = config or RedactionConfig()

    def redact_string(self, value: str) -> str:
        if not self.config.enabled:
            return value

        result = value
        # Longest first so a secret containing another is replaced whole
        for secret in sorted(_registered_secrets | self.config.extra_secrets, key=len, reverse=True):
            result = result.replace(secret, KEY_REDACTED)
        for pattern, replacement in TOKEN_PATTERNS:
            result = pattern.sub(replacement, result)
        return result

    def should_redact_key(self, key: str) -> bool:
        return self.config.enabled and key.lower() in self.config.sensitive_keys

    def redact_value(self, value: Any, key: Optional[str] = None) -> Any:
        """Redact a single value, optionally considering its key."""
        if not self.config.enabled:
            return value

        if isinstance(value, str):
            if key and self.should_redact_key(key):
                # Header values already shown as sk-...xyz stay readable
                return value if _is_masked(value) else VALUE_REDACTED
            return self.redact_string(value)
        if isinstance(value, dict):
            return self.redact_dict(value)
        if isinstance(value, (list, tuple)):
            return [self.redact_value(item) for item in value]
        return value

    def redact_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        if not self.config.enabled:
            return data
        return {k: self.redact_value(v, key=k) for k, v in data.items()}


_default_redactor: Optional[Redactor] = None


def default_redactor() -> Redactor:
    global _default_redactor
    if _default_redactor is None:
        _default_redactor = Redactor()
    return _default_redactor


def redact_value(value: Any, key: Optional[str] = None) -> Any:
    return default_redactor().redact_value(value, key=key)


def redact_dict(data: dict[str, Any]) -> dict[str, Any]:
    return default_redactor().redact_dict(data)
