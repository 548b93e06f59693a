from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class CountdownClock:
    """Tick-driven countdown bound to one session.

    The host delivers ``tick()`` roughly once per second; this object never
    measures wall-clock time itself. Without a duration the clock is inert.
    """

    def __init__(self) -> None:
        self._duration_s: int | None = None
        self._remaining_s: int | None = None
        self._running = False

    @property
    def duration_s(self) -> int | None:
        return self._duration_s

    @property
    def is_timed(self) -> bool:
        return self._duration_s is not None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, duration_s: int | None = None) -> None:
        if duration_s is not None and duration_s <= 0:
            raise ValueError("duration_s must be > 0")
        self._duration_s = None if duration_s is None else int(duration_s)
        self._remaining_s = self._duration_s
        self._running = True

    def stop(self) -> None:
        self._running = False

    def tick(self) -> bool:
        """Consume one second. Returns True only on the tick that reaches zero."""

        if not self._running or self._remaining_s is None:
            return False
        if self._remaining_s <= 0:
            return False
        self._remaining_s -= 1
        return self._remaining_s == 0

    def remaining(self) -> int | None:
        return self._remaining_s

    def expired(self) -> bool:
        return self._remaining_s is not None and self._remaining_s <= 0


def utc_now_iso() -> str:
    """Wall-clock timestamp for records, e.g. ``2024-05-01T09:30:00Z``."""

    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time()))
