"""Frame clock: a monotonically advancing tick plus clamped frame delta."""

import time

from boneforge.constants import MAX_DELTA_TIME


class FrameClock:
    """Hands out one distinct tick per rendered frame.

    The tick is what ``BonePoseSet.update`` and ``Instance.update`` compare
    against to recompute matrices at most once per frame.
    """

    def __init__(self, start_tick: int = 0):
        self._tick = start_tick
        self._last_time = time.perf_counter()

    @property
    def tick(self) -> int:
        return self._tick

    def advance(self) -> tuple[int, float]:
        """Start a new frame; return (tick, seconds since last frame)."""
        now = time.perf_counter()
        dt = min(now - self._last_time, MAX_DELTA_TIME)
        self._last_time = now
        self._tick += 1
        return self._tick, dt

    def reset(self) -> None:
        self._last_time = time.perf_counter()
