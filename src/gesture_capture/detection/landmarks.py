"""
Hand Landmark Types
====================

21-point hand landmark containers following the MediaPipe index convention.
Kept free of any model dependency so the recognition stages can be used
and tested without MediaPipe installed.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

NUM_LANDMARKS = 21


class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# Per-finger (tip, pip, mcp) triples, thumb first.
# For the thumb the IP joint plays the role of the PIP.
FINGER_TIPS = (4, 8, 12, 16, 20)
FINGER_PIPS = (3, 6, 10, 14, 18)
FINGER_MCPS = (2, 5, 9, 13, 17)


class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float = 0.0  # Depth relative to wrist, optional

    def to_pixel(self, width: int, height: int) -> Tuple[int, int]:
        """Convert normalized coordinates to pixel coordinates."""
        return (int(self.x * width), int(self.y * height))


@dataclass
class HandLandmarks:
    """One detected hand: exactly 21 landmarks plus handedness.

    A partial landmark set is not a hand. Construction fails with
    ValueError so callers treat it as "no hand this frame".
    """
    landmarks: List[Landmark]
    handedness: Optional[str] = None  # "Left", "Right" or unknown
    score: float = 0.0

    def __post_init__(self):
        if len(self.landmarks) != NUM_LANDMARKS:
            raise ValueError(
                f"expected {NUM_LANDMARKS} landmarks, got {len(self.landmarks)}"
            )

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]],
                    handedness: Optional[str] = None,
                    score: float = 0.0) -> "HandLandmarks":
        """Build from (x, y) or (x, y, z) tuples."""
        return cls(
            landmarks=[Landmark(*p) for p in points],
            handedness=handedness,
            score=score,
        )

    def get(self, index: LandmarkIndex) -> Landmark:
        """Get landmark by index."""
        return self.landmarks[index]

    @property
    def is_right(self) -> Optional[bool]:
        if self.handedness is None:
            return None
        return self.handedness == "Right"

    def to_numpy(self) -> np.ndarray:
        """Convert landmarks to numpy array of shape (21, 3)."""
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks], dtype=np.float64)
