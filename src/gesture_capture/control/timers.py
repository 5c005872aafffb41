"""
Cooperative one-shot timers.

Timers never fire on their own thread. The owning loop calls ``poll()``
with the current time and due callbacks run inline, so they see the same
state as every other loop step.
"""

import heapq
import itertools
import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class Timer:
    """Handle for a scheduled callback."""

    __slots__ = ("name", "deadline_ms", "callback", "cancelled", "fired")

    def __init__(self, name: str, deadline_ms: float, callback: Callable[[float], None]):
        self.name = name
        self.deadline_ms = deadline_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self):
        return f"Timer({self.name}, deadline={self.deadline_ms:.0f}ms, active={self.active})"


class TimerQueue:
    """Deadline-ordered queue of one-shot timers."""

    def __init__(self):
        self._heap: List[Tuple[float, int, Timer]] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[float], None],
                   now_ms: float, name: str = "") -> Timer:
        """Schedule ``callback(fire_time_ms)`` to run ``delay_ms`` after ``now_ms``."""
        timer = Timer(name or getattr(callback, "__name__", "timer"), now_ms + delay_ms, callback)
        heapq.heappush(self._heap, (timer.deadline_ms, next(self._seq), timer))
        logger.debug("Armed %r", timer)
        return timer

    def poll(self, now_ms: float) -> int:
        """Fire every timer due at ``now_ms``; return how many fired."""
        fired = 0
        while self._heap and self._heap[0][0] <= now_ms:
            _, _, timer = heapq.heappop(self._heap)
            if timer.cancelled:
                continue
            timer.fired = True
            fired += 1
            timer.callback(now_ms)
        return fired

    def cancel_all(self) -> None:
        """Cancel and drop every pending timer."""
        for _, _, timer in self._heap:
            timer.cancel()
        self._heap.clear()

    @property
    def pending(self) -> int:
        """Number of armed, not yet fired timers."""
        return sum(1 for _, _, timer in self._heap if timer.active)
