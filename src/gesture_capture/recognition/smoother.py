"""
Temporal Smoother
==================

Rolling-window mode over raw finger counts. Runs on the fixed-rate
sampling tick, not on the detection tick.
"""

import logging
from collections import Counter, deque
from typing import Deque, Iterable, List

logger = logging.getLogger(__name__)


def mode_of(values: Iterable[int]) -> int:
    """Most frequent value; 0 for an empty window.

    Ties go to the smallest value: candidates are scanned in ascending
    order and the first one reaching the top frequency wins.
    """
    counts = Counter(values)
    if not counts:
        return 0
    return max(sorted(counts), key=lambda value: counts[value])


class CountSmoother:
    """
    Fixed-capacity window of raw counts.

    Example:
        >>> smoother = CountSmoother(window=5)
        >>> for raw in (2, 2, 3, 2, 3):
        ...     smoothed = smoother.push(raw)
        >>> smoothed
        2
    """

    def __init__(self, window: int = 5):
        if window < 1:
            raise ValueError("smoothing window must be at least 1")
        self.window = window
        self._buffer: Deque[int] = deque(maxlen=window)
        self._smoothed = 0

    def push(self, raw_count: int) -> int:
        """Add one sample, evicting the oldest, and return the window mode."""
        self._buffer.append(raw_count)
        self._smoothed = mode_of(self._buffer)
        return self._smoothed

    def reset(self) -> None:
        self._buffer.clear()
        self._smoothed = 0

    @property
    def smoothed(self) -> int:
        return self._smoothed

    @property
    def contents(self) -> List[int]:
        """Window contents, oldest first."""
        return list(self._buffer)
