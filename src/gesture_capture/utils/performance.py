"""
Loop Rate Monitoring
=====================

Rolling cadence and stage timing for the frame loop and the sampling
loop, reported in the debug snapshot.
"""

import time
import logging
from collections import deque
from contextlib import contextmanager
from typing import Deque, Dict, Optional

logger = logging.getLogger(__name__)


class LoopRate:
    """
    Rolling tick rate of one loop, from the loop's own timestamps.

    Example:
        >>> rate = LoopRate()
        >>> for t in range(0, 1000, 40):
        ...     rate.tick(t)
        >>> round(rate.hz)
        25
    """

    def __init__(self, window_size: int = 30):
        self.window_size = window_size
        self._intervals: Deque[float] = deque(maxlen=window_size)
        self._stage_times: Dict[str, Deque[float]] = {}
        self._last_tick_ms: Optional[float] = None
        self._total_ticks = 0

    def tick(self, now_ms: float) -> None:
        """Record one loop iteration."""
        if self._last_tick_ms is not None:
            self._intervals.append(now_ms - self._last_tick_ms)
        self._last_tick_ms = now_ms
        self._total_ticks += 1

    @contextmanager
    def measure(self, stage: str):
        """Time a stage of the loop body (e.g. "detection")."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            if stage not in self._stage_times:
                self._stage_times[stage] = deque(maxlen=self.window_size)
            self._stage_times[stage].append(elapsed)

    def stage_time_ms(self, stage: str) -> float:
        """Average time for a stage in milliseconds."""
        times = self._stage_times.get(stage)
        if not times:
            return 0.0
        return (sum(times) / len(times)) * 1000

    @property
    def hz(self) -> float:
        """Ticks per second over the rolling window."""
        if not self._intervals:
            return 0.0
        avg = sum(self._intervals) / len(self._intervals)
        return 1000.0 / avg if avg > 0 else 0.0

    @property
    def total_ticks(self) -> int:
        return self._total_ticks

    def reset(self) -> None:
        self._intervals.clear()
        self._stage_times.clear()
        self._last_tick_ms = None
        self._total_ticks = 0
