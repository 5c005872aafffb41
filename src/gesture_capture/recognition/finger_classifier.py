"""
Finger-Extension Classifier
============================

Rule-based per-finger extension test on 21-point hand landmarks, and the
per-frame raw extended-finger count with a short grace period for
detector glitches.

Finger Extension Logic:
- Index..pinky: the tip->pip and pip->mcp segments are close to parallel
  AND the tip is farther from the mcp than the pip is, both distances in
  palm widths so the test does not depend on distance from the camera.
- Thumb: extension is sideways. The thumb axis (mcp->tip) must not be
  nearly parallel to the palm axis (wrist->index mcp), and the tip must be
  farther from the mcp than the ip joint is.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..detection.landmarks import (
    FINGER_MCPS,
    FINGER_PIPS,
    FINGER_TIPS,
    HandLandmarks,
    LandmarkIndex,
)
from .geometry import cosine_angle, distance, normalized_distance, palm_width, vector

logger = logging.getLogger(__name__)


@dataclass
class ClassifierConfig:
    """Finger classifier thresholds. Defaults are tuned loose."""
    # Min cosine between tip->pip and pip->mcp for a straight finger
    straight_cos: float = 0.70
    # Tip-to-mcp must exceed pip-to-mcp by this factor
    tip_margin: float = 1.03
    # Max |cosine| between thumb axis and palm axis for a splayed thumb
    thumb_lateral_cos: float = 0.80
    thumb_margin: float = 1.01
    # Palm width (normalized) below which a detection is unreliable
    min_palm_width: float = 0.01
    # How long the last count survives unreliable frames
    grace_ms: float = 150.0

    @classmethod
    def from_dict(cls, config: dict) -> "ClassifierConfig":
        """Create config from dictionary."""
        return cls(
            straight_cos=config.get("straight_cos", 0.70),
            tip_margin=config.get("tip_margin", 1.03),
            thumb_lateral_cos=config.get("thumb_lateral_cos", 0.80),
            thumb_margin=config.get("thumb_margin", 1.01),
            min_palm_width=config.get("min_palm_width", 0.01),
            grace_ms=config.get("grace_ms", 150.0),
        )


class FingerClassifier:
    """
    Counts extended fingers, one frame at a time.

    ``update()`` is the per-frame entry point used by the session. It never
    raises: a frame that cannot be classified counts as "no reliable
    detection" and falls under the grace policy.

    Example:
        >>> classifier = FingerClassifier()
        >>> raw = classifier.update(hand, now_ms)
        >>> 0 <= raw <= 5
        True
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()
        self._raw_count = 0
        self._palm_width: Optional[float] = None
        self._handedness: Optional[str] = None
        self._last_reliable_ms: Optional[float] = None

    def is_extended(self, landmarks: np.ndarray, finger: int, palm_w: Optional[float]) -> bool:
        """Whether finger ``finger`` (0=thumb .. 4=pinky) is extended."""
        if not palm_w:
            return False

        tip = landmarks[FINGER_TIPS[finger]]
        pip = landmarks[FINGER_PIPS[finger]]
        mcp = landmarks[FINGER_MCPS[finger]]

        if finger == 0:
            wrist = landmarks[LandmarkIndex.WRIST]
            index_mcp = landmarks[LandmarkIndex.INDEX_MCP]
            palm_axis = vector(index_mcp, wrist)
            thumb_axis = vector(tip, mcp)
            lateral = abs(cosine_angle(palm_axis, thumb_axis)) < self.config.thumb_lateral_cos
            tip_further = distance(tip, mcp) > distance(pip, mcp) * self.config.thumb_margin
            return tip_further and lateral

        straight = cosine_angle(vector(pip, tip), vector(mcp, pip)) > self.config.straight_cos
        tip_further = (
            normalized_distance(tip, mcp, palm_w)
            > normalized_distance(pip, mcp, palm_w) * self.config.tip_margin
        )
        return straight and tip_further

    def count_extended(self, landmarks: np.ndarray, palm_w: Optional[float]) -> int:
        """Number of extended fingers, 0..5."""
        return sum(1 for finger in range(5) if self.is_extended(landmarks, finger, palm_w))

    def update(self, hand: Optional[HandLandmarks], now_ms: float) -> int:
        """Classify one frame and return the raw count.

        Args:
            hand: Detected hand, or None when nothing usable was seen
            now_ms: Current loop time in milliseconds
        """
        palm_w = None
        landmarks = None
        if hand is not None:
            try:
                landmarks = hand.to_numpy()
                palm_w = palm_width(landmarks)
            except (ValueError, TypeError, IndexError) as e:
                logger.warning("Discarding malformed landmark set: %s", e)
                landmarks = None

        if landmarks is None or palm_w is None or palm_w < self.config.min_palm_width:
            self._decay(now_ms, palm_w)
            return self._raw_count

        try:
            count = self.count_extended(landmarks, palm_w)
        except (ValueError, FloatingPointError, IndexError) as e:
            logger.warning("Finger classification failed: %s", e)
            self._decay(now_ms, palm_w)
            return self._raw_count

        self._last_reliable_ms = now_ms
        self._palm_width = palm_w
        self._handedness = hand.handedness
        if count != self._raw_count:
            logger.debug("Raw count %d -> %d (palm=%.3f)", self._raw_count, count, palm_w)
        self._raw_count = count
        return count

    def _decay(self, now_ms: float, palm_w: Optional[float]) -> None:
        """Hold the last count through the grace window, then drop to 0."""
        if self._last_reliable_ms is None or now_ms - self._last_reliable_ms > self.config.grace_ms:
            self._raw_count = 0
            self._palm_width = palm_w
            self._handedness = None

    def reset(self) -> None:
        """Clear all per-session state."""
        self._raw_count = 0
        self._palm_width = None
        self._handedness = None
        self._last_reliable_ms = None

    @property
    def raw_count(self) -> int:
        return self._raw_count

    @property
    def palm_width(self) -> Optional[float]:
        """Palm width of the last reliable detection, for debug display."""
        return self._palm_width

    @property
    def handedness(self) -> Optional[str]:
        return self._handedness
