"""
Tests for the MediaPipe Hand Detector Adapter
==============================================
"""

import pytest
import numpy as np
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

pytest.importorskip("mediapipe")

from gesture_capture.core.errors import DETECTOR_ERROR_MESSAGE
from gesture_capture.detection import hand_detector
from gesture_capture.detection.hand_detector import HandDetector, HandDetectorConfig


def fake_result(num_points=21, handedness="Right"):
    points = [SimpleNamespace(x=0.5, y=0.5 + i * 0.01, z=0.0) for i in range(num_points)]
    return SimpleNamespace(
        hand_landmarks=[points] if num_points else [],
        handedness=[[SimpleNamespace(category_name=handedness, score=0.9)]],
    )


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "hand_landmarker.task"
    path.write_bytes(b"model")
    return path


@pytest.fixture
def landmarker():
    with patch.object(hand_detector.vision, "HandLandmarker") as mock_cls, \
            patch.object(hand_detector.vision, "HandLandmarkerOptions"), \
            patch.object(hand_detector.python, "BaseOptions"), \
            patch.object(hand_detector.mp, "Image"):
        instance = MagicMock()
        instance.detect_for_video.return_value = fake_result()
        mock_cls.create_from_options.return_value = instance
        yield instance


@pytest.fixture
def detector(model_file, landmarker):
    det = HandDetector(HandDetectorConfig(model_path=str(model_file)))
    assert det.start()
    yield det
    det.stop()


class TestHandDetectorConfig:
    """Test suite for HandDetectorConfig."""

    def test_from_dict(self):
        config = HandDetectorConfig.from_dict({"min_detection_confidence": 0.7})
        assert config.min_detection_confidence == 0.7
        assert config.min_tracking_confidence == 0.5  # Default
        assert config.model_path == ""


class TestHandDetector:
    """Test suite for HandDetector."""

    def test_not_ready_before_start(self):
        det = HandDetector()
        assert not det.is_ready
        assert det.detect(np.zeros((4, 4, 3), dtype=np.uint8), 0) is None

    def test_start_and_detect(self, detector):
        assert detector.is_ready
        hand = detector.detect(np.zeros((4, 4, 3), dtype=np.uint8), 100)

        assert hand is not None
        assert len(hand.landmarks) == 21
        assert hand.handedness == "Right"
        assert hand.score == pytest.approx(0.9)

    def test_no_hand(self, detector, landmarker):
        landmarker.detect_for_video.return_value = fake_result(num_points=0)
        assert detector.detect(np.zeros((4, 4, 3), dtype=np.uint8), 100) is None

    def test_partial_landmarks_dropped(self, detector, landmarker):
        landmarker.detect_for_video.return_value = fake_result(num_points=15)
        assert detector.detect(np.zeros((4, 4, 3), dtype=np.uint8), 100) is None

    def test_timestamps_forced_increasing(self, detector, landmarker):
        image = np.zeros((4, 4, 3), dtype=np.uint8)
        detector.detect(image, 100)
        detector.detect(image, 100)
        detector.detect(image, 50)

        stamps = [c.args[1] for c in landmarker.detect_for_video.call_args_list]
        assert stamps == [100, 101, 102]

    def test_missing_model_download_fails(self, tmp_path):
        det = HandDetector(HandDetectorConfig(model_path=str(tmp_path / "missing.task")))
        with patch.object(hand_detector, "download_model", return_value=False):
            assert det.start() is False
        assert det.error == DETECTOR_ERROR_MESSAGE
        assert not det.is_ready

    def test_model_load_failure(self, model_file):
        det = HandDetector(HandDetectorConfig(model_path=str(model_file)))
        with patch.object(hand_detector.vision, "HandLandmarker") as mock_cls, \
                patch.object(hand_detector.vision, "HandLandmarkerOptions"), \
                patch.object(hand_detector.python, "BaseOptions"):
            mock_cls.create_from_options.side_effect = RuntimeError("corrupt model")
            assert det.start() is False
        assert det.error == DETECTOR_ERROR_MESSAGE

    def test_stop(self, detector, landmarker):
        detector.stop()
        assert not detector.is_ready
        landmarker.close.assert_called_once()
