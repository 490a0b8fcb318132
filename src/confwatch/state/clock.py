"""Timestamp of the last attempted poll cycle."""

from __future__ import annotations


class PollClock:
    """Monotonic time of the last poll attempt, used by the rate gate."""

    def __init__(self) -> None:
        self._last_attempt: float | None = None

    @property
    def last_attempt(self) -> float | None:
        return self._last_attempt

    def elapsed(self, now: float) -> float | None:
        if self._last_attempt is None:
            return None
        return now - self._last_attempt

    def is_due(self, now: float, interval: float) -> bool:
        """Whether at least *interval* seconds passed since the last attempt.

        A clock that was never marked is always due, and a non-positive
        interval disables the gate.
        """
        if interval <= 0:
            return True
        elapsed = self.elapsed(now)
        return elapsed is None or elapsed >= interval

    def mark(self, now: float) -> None:
        self._last_attempt = now

    def reset(self) -> None:
        self._last_attempt = None
