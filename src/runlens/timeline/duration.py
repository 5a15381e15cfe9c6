"""Human-readable durations and clock times."""
from __future__ import annotations

import math
from datetime import datetime
from typing import Optional, Union

Number = Union[int, float]

NOT_AVAILABLE = "N/A"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_duration(ms: Optional[Number]) -> str:
    """Format a duration in milliseconds.

    - under a second: ``"245ms"``
    - under a minute: ``"1.5s"``, or ``"1s"`` on a whole second
    - otherwise: ``"1m 30s"``, or ``"2m"`` on a whole minute

    Rounding carries into the next unit, so ``"1000ms"``, ``"60s"`` and
    ``"1m 60s"`` are never produced.
    """
    if ms is None or (isinstance(ms, float) and math.isnan(ms)):
        return NOT_AVAILABLE
    if ms < 0:
        return "-" + format_duration(-ms)

    whole_ms = _round_half_up(ms)
    if whole_ms < 1000:
        return f"{whole_ms}ms"

    tenths = _round_half_up(ms / 100)
    if tenths < 600:
        if tenths % 10 == 0:
            return f"{tenths // 10}s"
        return f"{tenths // 10}.{tenths % 10}s"

    minutes = int(ms // 60000)
    seconds = _round_half_up((ms - minutes * 60000) / 1000)
    if seconds == 60:
        minutes += 1
        seconds = 0
    if seconds:
        return f"{minutes}m {seconds}s"
    return f"{minutes}m"


def format_clock(ms: Optional[Number]) -> str:
    """Format an epoch-ms timestamp as local ``HH:MM:SS[.mmm]``."""
    if not ms:
        return NOT_AVAILABLE
    moment = datetime.fromtimestamp(ms / 1000)
    millis = int(ms) % 1000
    if millis == 0:
        return moment.strftime("%H:%M:%S")
    return f"{moment.strftime('%H:%M:%S')}.{millis:03d}"
