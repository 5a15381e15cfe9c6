"""Timestamp normalization.

The Assistants API reports every timestamp as integer epoch seconds. The
timeline works in epoch milliseconds, so raw values pass through here before
reaching the core.
"""
from __future__ import annotations

import time
from typing import Any, Mapping, Optional, Sequence

from runlens.errors import DecodeError


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_millis(epoch_seconds: Optional[int], fallback: Optional[int]) -> Optional[int]:
    """Convert epoch seconds to epoch milliseconds.

    A null value means "not known yet" (an in-flight run or step), in which
    case ``fallback`` is returned unchanged. A value that does not convert to
    an integer raises ``DecodeError``.
    """
    if epoch_seconds is None:
        return fallback
    try:
        return int(epoch_seconds) * 1000
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid timestamp: {epoch_seconds!r}", raw_text=repr(epoch_seconds)) from e


def first_timestamp(record: Mapping[str, Any], fields: Sequence[str]) -> Optional[int]:
    """Return the first non-null raw timestamp among ``fields``."""
    for name in fields:
        value = record.get(name)
        if value is not None:
            return value
    return None
