"""
Hold-Debounce State Machine
============================

Promotes a smoothed finger count to a stable pose only after the same
candidate has been seen continuously for ``hold_ms``.
"""

import logging
from enum import IntEnum

logger = logging.getLogger(__name__)


class StablePose(IntEnum):
    """Debounced pose. The value is the pose number shown to the user."""
    UNKNOWN = 0
    ONE = 1
    TWO = 2
    THREE_OR_MORE = 3


def pose_from_count(count: int) -> StablePose:
    """Map a finger count to its pose: 1->ONE, 2->TWO, >=3->THREE_OR_MORE."""
    if count == 1:
        return StablePose.ONE
    if count == 2:
        return StablePose.TWO
    if count >= 3:
        return StablePose.THREE_OR_MORE
    return StablePose.UNKNOWN


class HoldDebouncer:
    """
    Residency-based debouncer for pose candidates.

    Different call sites trade responsiveness for stability differently,
    so ``hold_ms`` is a parameter (150ms for the capture sequence, 500ms
    for single-shot auto capture).
    """

    def __init__(self, hold_ms: float = 150.0):
        self.hold_ms = hold_ms
        self._stable = StablePose.UNKNOWN
        self._candidate = StablePose.UNKNOWN
        self._candidate_since = 0.0

    def update(self, smoothed_count: int, now_ms: float) -> StablePose:
        """Evaluate one smoothing tick and return the stable pose."""
        candidate = pose_from_count(smoothed_count)

        if candidate != self._candidate:
            self._candidate = candidate
            self._candidate_since = now_ms
            return self._stable

        if now_ms - self._candidate_since >= self.hold_ms and self._stable != candidate:
            logger.debug("Stable pose %s -> %s after %.0fms",
                         self._stable.name, candidate.name, now_ms - self._candidate_since)
            self._stable = candidate

        return self._stable

    def reset(self) -> None:
        self._stable = StablePose.UNKNOWN
        self._candidate = StablePose.UNKNOWN
        self._candidate_since = 0.0

    @property
    def stable_pose(self) -> StablePose:
        return self._stable

    @property
    def candidate(self) -> StablePose:
        return self._candidate
