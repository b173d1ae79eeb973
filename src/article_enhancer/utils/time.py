"""Time utilities."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def monotonic_ms() -> int:
    """Millisecond reading for durations only; not a wall-clock time."""
    return int(time.monotonic() * 1000)


def elapsed_ms(start_ms: int) -> int:
    return max(0, monotonic_ms() - start_ms)


def utc_now() -> datetime:
    """Timezone-aware wall-clock time for persisted timestamps."""
    return datetime.now(timezone.utc)
