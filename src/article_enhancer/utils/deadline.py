"""Wall-clock deadline token passed into long-running calls."""

from __future__ import annotations

import time
from dataclasses import dataclass


def _now() -> float:
    return time.monotonic()


@dataclass(frozen=True)
class Deadline:
    expires_at: float
    seconds: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        seconds = max(0.0, float(seconds))
        return cls(expires_at=_now() + seconds, seconds=seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - _now())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0
