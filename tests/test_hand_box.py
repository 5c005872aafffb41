"""
Tests for the Hand Box Tracker
===============================
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_capture.detection.hand_box import HandBox, HandBoxConfig, HandBoxTracker, compute_box
from conftest import make_pose


class TestComputeBox:
    """Test suite for box computation."""

    def test_padded_bounds(self):
        hand = make_pose(5)
        xs = [lm.x for lm in hand.landmarks]
        ys = [lm.y for lm in hand.landmarks]

        box = compute_box(hand, padding=0.06)

        assert box.x == pytest.approx(min(xs) - 0.06)
        assert box.y == pytest.approx(min(ys) - 0.06)
        assert box.x + box.w == pytest.approx(max(xs) + 0.06)
        assert box.y + box.h == pytest.approx(max(ys) + 0.06)

    @pytest.mark.parametrize("shift", [(-0.5, 0.0), (0.5, 0.0), (0.0, -0.7), (0.0, 0.4), (0.6, 0.6)])
    def test_clamped_to_frame(self, shift):
        box = compute_box(make_pose(5, shift=shift), padding=0.06)

        assert box.x >= 0.0 and box.y >= 0.0
        assert box.x + box.w <= 1.0 + 1e-9
        assert box.y + box.h <= 1.0 + 1e-9
        assert box.w >= 0.0 and box.h >= 0.0

    def test_to_pixels(self):
        assert HandBox(0.25, 0.5, 0.5, 0.25).to_pixels(640, 480) == (160, 240, 320, 120)


class TestHandBoxTracker:
    """Test suite for the per-frame tracker."""

    @pytest.fixture
    def tracker(self):
        return HandBoxTracker(HandBoxConfig(padding=0.06, grace_ms=150))

    def test_box_follows_hand(self, tracker):
        box = tracker.update(make_pose(2), 0)
        assert box is not None
        moved = tracker.update(make_pose(2, shift=(0.1, 0.0)), 33)
        assert moved.x == pytest.approx(box.x + 0.1)

    def test_box_survives_short_dropout(self, tracker):
        box = tracker.update(make_pose(2), 0)
        assert tracker.update(None, 150) == box

    def test_box_cleared_after_grace(self, tracker):
        tracker.update(make_pose(2), 0)
        assert tracker.update(None, 151) is None
        assert tracker.box is None

    def test_no_hand_yet(self, tracker):
        assert tracker.update(None, 0) is None

    def test_from_dict(self):
        config = HandBoxConfig.from_dict({"padding": 0.1})
        assert config.padding == 0.1
        assert config.grace_ms == 150  # Default
