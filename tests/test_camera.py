"""
Tests for Camera Module
========================
"""

import pytest
import numpy as np
import sys
from pathlib import Path
from unittest.mock import patch, MagicMock

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_capture.capture.camera import Camera, CameraConfig, Frame
from gesture_capture.core.errors import CAMERA_ERROR_MESSAGE
from gesture_capture.core.session import CaptureSession


class TestCameraConfig:
    """Test suite for CameraConfig."""

    def test_default_values(self):
        config = CameraConfig()

        assert config.device_id == 0
        assert config.width == 1280
        assert config.height == 720
        assert config.fps == 30
        assert config.buffer_size == 1

    def test_from_dict_partial(self):
        config = CameraConfig.from_dict({"device_id": 2, "fps": 15})

        assert config.device_id == 2
        assert config.fps == 15
        assert config.width == 1280  # Default


class TestFrame:
    """Test suite for Frame class."""

    @pytest.fixture
    def frame(self):
        image = np.zeros((2, 3, 3), dtype=np.uint8)
        image[0, 0] = [255, 0, 0]  # Blue in BGR, top-left
        return Frame(image=image, timestamp=12.3456, frame_number=7)

    def test_rgb_conversion(self, frame):
        rgb = frame.rgb
        assert list(rgb[0, 0]) == [0, 0, 255]

    def test_timestamp_ms(self, frame):
        assert frame.timestamp_ms == 12345

    def test_mirrored(self, frame):
        mirrored = frame.mirrored()
        assert list(mirrored.image[0, 2]) == [255, 0, 0]
        assert list(mirrored.image[0, 0]) == [0, 0, 0]
        assert mirrored.frame_number == frame.frame_number
        # Original untouched
        assert list(frame.image[0, 0]) == [255, 0, 0]

    def test_copy_is_independent(self, frame):
        copied = frame.copy()
        copied.image[:] = 9
        assert frame.image[1, 1, 0] == 0

    def test_encode_png(self, frame):
        data = frame.encode(".png")
        assert data[:8] == b"\x89PNG\r\n\x1a\n"


class TestCamera:
    """Test suite for Camera class."""

    @pytest.fixture
    def mock_cv2(self):
        """Mock OpenCV VideoCapture."""
        with patch("gesture_capture.capture.camera.cv2") as mock:
            mock_cap = MagicMock()
            mock_cap.isOpened.return_value = True
            mock_cap.read.return_value = (True, np.zeros((720, 1280, 3), dtype=np.uint8))
            mock_cap.get.return_value = 30.0
            mock.VideoCapture.return_value = mock_cap
            yield mock

    def test_camera_init(self):
        camera = Camera(CameraConfig(device_id=0))

        assert camera.config.device_id == 0
        assert not camera.is_running
        assert not camera.is_ready
        assert camera.read() is None

    def test_start_success(self, mock_cv2):
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))

        assert camera.start() is True
        assert camera.is_running
        assert camera.error is None

        frame = camera.read()
        assert frame is not None
        assert frame.frame_number == 1
        assert camera.is_ready

        camera.stop()
        assert not camera.is_ready

    def test_synchronous_mode_ready_before_first_read(self, mock_cv2):
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))
        assert not camera.is_ready

        camera.start()
        assert camera.is_ready

        camera.stop()
        assert not camera.is_ready

    def test_synchronous_mode_feeds_session(self, mock_cv2):
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))
        detector = MagicMock()
        detector.is_ready = True
        detector.detect.return_value = None
        session = CaptureSession(camera, detector)

        assert session.start(now_ms=0)
        for i in range(30):
            session.tick(now_ms=i * 10)
        session.stop()

        assert detector.detect.call_count >= 1

    def test_start_failure_sets_error(self, mock_cv2):
        mock_cv2.VideoCapture.return_value.isOpened.return_value = False
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))

        assert camera.start() is False
        assert camera.error == CAMERA_ERROR_MESSAGE
        assert not camera.is_running

    def test_failed_read(self, mock_cv2):
        mock_cv2.VideoCapture.return_value.read.return_value = (False, None)
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))
        camera.start()

        assert camera.read() is None
        camera.stop()

    def test_pause_resume(self):
        camera = Camera()
        camera.pause()
        assert camera.is_paused
        camera.resume()
        assert not camera.is_paused

    def test_resolution_property(self):
        camera = Camera(CameraConfig(width=800, height=600))
        assert camera.resolution == (800, 600)

    def test_context_manager(self, mock_cv2):
        config = CameraConfig(warmup_frames=0, threaded=False)

        with Camera(config) as camera:
            assert camera.is_running

        assert not camera.is_running


class TestCameraIntegration:
    """Integration tests requiring real camera (marked as slow)."""

    @pytest.mark.skip(reason="Requires physical camera")
    def test_real_camera_capture(self):
        camera = Camera(CameraConfig(warmup_frames=5, threaded=False))

        try:
            if camera.start():
                frame = camera.read()

                assert frame is not None
                assert frame.image.shape[0] > 0
        finally:
            camera.stop()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
