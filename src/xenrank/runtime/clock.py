from __future__ import annotations

import threading
import time


class Clock:
    """Time source for the engine. The core never reads wall-clock time itself."""

    def now_seconds(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    def now_seconds(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """Deterministic clock for tests, simulations and replays."""

    def __init__(self, start_s: int = 0) -> None:
        self._lock = threading.Lock()
        self._now = int(start_s)

    def now_seconds(self) -> int:
        with self._lock:
            return self._now

    def set(self, now_s: int) -> None:
        v = int(now_s)
        with self._lock:
            if v < self._now:
                raise ValueError(f"clock must not go backwards ({v} < {self._now})")
            self._now = v

    def advance(self, seconds: int) -> int:
        d = int(seconds)
        if d < 0:
            raise ValueError(f"cannot advance by a negative amount: {d}")
        with self._lock:
            self._now += d
            return self._now


__all__ = ["Clock", "ManualClock", "SystemClock"]
