"""
Shared fixtures: synthetic hands, fake frame source and fake detector.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_capture.detection.landmarks import HandLandmarks

WRIST = (0.50, 0.80)
# x, y of the MCP joint for index, middle, ring, pinky
FINGER_BASES = [(0.44, 0.60), (0.50, 0.58), (0.56, 0.60), (0.62, 0.62)]

# Finger-count pose -> which fingers (thumb..pinky) are up
POSE_FINGERS = {
    0: (False, False, False, False, False),
    1: (False, True, False, False, False),
    2: (False, True, True, False, False),
    3: (False, True, True, True, False),
    4: (False, True, True, True, True),
    5: (True, True, True, True, True),
}


def _thumb(extended):
    if extended:
        # Splayed sideways, away from the palm axis
        return [(0.45, 0.76), (0.40, 0.72), (0.34, 0.72), (0.28, 0.72)]
    # Tucked across the palm, tip back near the MCP
    return [(0.45, 0.76), (0.42, 0.72), (0.46, 0.68), (0.44, 0.70)]


def _finger(base, extended):
    x, y = base
    if extended:
        return [(x, y), (x, y - 0.08), (x, y - 0.13), (x, y - 0.18)]
    # Curled: the tip folds back down toward the MCP
    return [(x, y), (x, y - 0.06), (x, y - 0.03), (x, y - 0.01)]


def make_hand(fingers=(True,) * 5, scale=1.0, shift=(0.0, 0.0), handedness="Right"):
    """Synthetic 21-point hand in normalized image coordinates.

    ``scale`` shrinks or grows the hand around the wrist; ``shift`` moves it.
    """
    points = [WRIST] + _thumb(fingers[0])
    for base, extended in zip(FINGER_BASES, fingers[1:]):
        points += _finger(base, extended)

    wx, wy = WRIST
    placed = [
        (wx + (px - wx) * scale + shift[0], wy + (py - wy) * scale + shift[1], 0.0)
        for px, py in points
    ]
    return HandLandmarks.from_points(placed, handedness=handedness)


def make_pose(count, **kwargs):
    """Synthetic hand showing ``count`` fingers."""
    return make_hand(POSE_FINGERS[count], **kwargs)


class FakeFrame:
    """Frame stand-in: carries a timestamp and records mirroring."""

    def __init__(self, timestamp_ms, mirrored=False):
        self.timestamp_ms = timestamp_ms
        self.is_mirrored = mirrored
        self.image = np.zeros((4, 4, 3), dtype=np.uint8)

    @property
    def rgb(self):
        return self.image

    def mirrored(self):
        return FakeFrame(self.timestamp_ms, mirrored=True)

    def copy(self):
        return FakeFrame(self.timestamp_ms, mirrored=self.is_mirrored)

    def encode(self, ext=".png"):
        return b"\x89PNG fake"


class FakeCamera:
    """Frame source whose clock the test moves by setting ``now_ms``."""

    def __init__(self, start_ok=True):
        self.start_ok = start_ok
        self.now_ms = 0
        self.started = 0
        self.stopped = 0
        self.is_paused = False
        self.error = None
        self.resolution = (4, 4)
        self._running = False

    def start(self):
        self.started += 1
        self._running = bool(self.start_ok)
        return self._running

    def stop(self):
        self.stopped += 1
        self._running = False

    @property
    def is_ready(self):
        return self._running

    def read(self):
        return FakeFrame(self.now_ms)


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def detector():
    """Ready detector that sees no hand until the test scripts one."""
    det = Mock()
    det.is_ready = True
    det.error = None
    det.start.return_value = True
    det.detect.return_value = None
    return det


@pytest.fixture
def open_hand():
    return make_pose(5)


@pytest.fixture
def fist():
    return make_pose(0)
