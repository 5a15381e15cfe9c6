"""Redaction of credentials in debug output and artifacts."""
from runlens.redaction.redactor import (
    RedactionConfig,
    Redactor,
    clear_registered_secrets,
    default_redactor,
    mask_secret,
    redact_dict,
    redact_value,
    register_secret,
)

__all__ = [
    "RedactionConfig",
    "Redactor",
    "clear_registered_secrets",
    "default_redactor",
    "mask_secret",
    "redact_dict",
    "redact_value",
    "register_secret",
]
