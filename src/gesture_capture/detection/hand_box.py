"""
Hand-Box Tracker
=================

Padded, clamped bounding box around the detected hand for on-screen
highlighting. Display only: nothing in the capture decision reads it.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from .landmarks import HandLandmarks

logger = logging.getLogger(__name__)


class HandBox(NamedTuple):
    """Axis-aligned box in normalized frame coordinates."""
    x: float
    y: float
    w: float
    h: float

    def to_pixels(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """Box as (x, y, w, h) in pixels."""
        return (
            int(self.x * width),
            int(self.y * height),
            int(self.w * width),
            int(self.h * height),
        )


@dataclass
class HandBoxConfig:
    """Hand box settings."""
    padding: float = 0.06   # Fraction of the frame added on each side
    grace_ms: float = 150.0  # Keep the last box this long after losing the hand

    @classmethod
    def from_dict(cls, config: dict) -> "HandBoxConfig":
        """Create config from dictionary."""
        return cls(
            padding=config.get("padding", 0.06),
            grace_ms=config.get("grace_ms", 150.0),
        )


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def compute_box(hand: HandLandmarks, padding: float) -> HandBox:
    """Min/max box over all landmarks, padded and clamped to [0, 1]."""
    xs = [lm.x for lm in hand.landmarks]
    ys = [lm.y for lm in hand.landmarks]

    x0 = _clamp(min(xs) - padding)
    y0 = _clamp(min(ys) - padding)
    x1 = max(x0, _clamp(max(xs) + padding))
    y1 = max(y0, _clamp(max(ys) + padding))

    return HandBox(x=x0, y=y0, w=x1 - x0, h=y1 - y0)


class HandBoxTracker:
    """
    Per-frame hand box with a short grace period on dropout.

    Example:
        >>> tracker = HandBoxTracker()
        >>> box = tracker.update(hand, now_ms)
        >>> box = tracker.update(None, now_ms + 500)  # hand gone
        >>> box is None
        True
    """

    def __init__(self, config: Optional[HandBoxConfig] = None):
        self.config = config or HandBoxConfig()
        self._box: Optional[HandBox] = None
        self._last_seen_ms: Optional[float] = None

    def update(self, hand: Optional[HandLandmarks], now_ms: float) -> Optional[HandBox]:
        """Recompute the box for this frame."""
        if hand is not None:
            self._box = compute_box(hand, self.config.padding)
            self._last_seen_ms = now_ms
        elif self._last_seen_ms is None or now_ms - self._last_seen_ms > self.config.grace_ms:
            self._box = None
        return self._box

    def reset(self) -> None:
        self._box = None
        self._last_seen_ms = None

    @property
    def box(self) -> Optional[HandBox]:
        return self._box
