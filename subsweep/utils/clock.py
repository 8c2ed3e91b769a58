"""Wall-clock helpers; persisted timestamps are epoch milliseconds."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Return the current time as integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


__all__ = ["Clock", "epoch_ms", "utc_now_iso"]
