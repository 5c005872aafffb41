"""
Tests for the Preview Overlay
==============================
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_capture.control.capture_sequence import Phase
from gesture_capture.core.session import SessionSnapshot
from gesture_capture.detection.hand_box import HandBox
from gesture_capture.recognition.pose_debouncer import StablePose
from gesture_capture.utils.visualization import Visualizer, VisualizerConfig


def snapshot(**overrides):
    values = dict(
        pose=StablePose.TWO, raw_count=2, smoothed_count=2, palm_width=0.18,
        handedness="Right", hand_box=HandBox(0.1, 0.2, 0.3, 0.4), step=2,
        phase=Phase.STEP2, wrong_pose=False, captured_steps=[1], hint=None,
        error=None, detector_ready=True, mirrored=True, frame_hz=30.0, sample_hz=24.0,
    )
    values.update(overrides)
    return SessionSnapshot(**values)


@pytest.fixture
def image():
    return np.zeros((240, 320, 3), dtype=np.uint8)


class TestVisualizerConfig:
    """Test suite for VisualizerConfig."""

    def test_from_dict_colors(self):
        config = VisualizerConfig.from_dict({"show_debug": True, "colors": {"warning": [1, 2, 3]}})
        assert config.show_debug is True
        assert config.warning_color == (1, 2, 3)
        assert config.box_color == (159, 149, 1)  # Default


class TestVisualizer:
    """Test suite for Visualizer."""

    def test_render_returns_new_image(self, image):
        viz = Visualizer(VisualizerConfig(show_debug=True))
        display = viz.render(image, snapshot())

        assert display.shape == image.shape
        assert display.any()
        assert not image.any()

    def test_hand_box_is_mirrored_with_preview(self, image):
        box = HandBox(0.0, 0.0, 0.25, 0.25)

        mirrored = Visualizer(VisualizerConfig(mirror_preview=True)).draw_hand_box(image.copy(), box)
        plain = Visualizer(VisualizerConfig(mirror_preview=False)).draw_hand_box(image.copy(), box)

        assert mirrored[:, 240:].any() and not mirrored[:, :200].any()
        assert plain[:, :80].any() and not plain[:, 120:].any()

    @pytest.mark.parametrize("overrides", [
        {"error": "Could not access webcam."},
        {"wrong_pose": True},
        {"hint": "Raise your hand for Pose 2"},
        {"phase": Phase.COMPLETE, "captured_steps": [1, 2, 3]},
        {"hand_box": None, "palm_width": None, "handedness": None, "detector_ready": False},
    ])
    def test_render_states(self, image, overrides):
        viz = Visualizer(VisualizerConfig(show_debug=True))
        display = viz.render(image, snapshot(**overrides), steps=(1, 2, 3))
        assert display.any()

    def test_nothing_to_draw(self, image):
        config = VisualizerConfig(show_hand_box=False, show_steps=False, show_debug=False)
        display = Visualizer(config).render(image, snapshot())
        assert not display.any()
