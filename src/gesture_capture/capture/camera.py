"""
Camera Frame Source
====================

OpenCV camera capture feeding the gesture pipeline. A background thread
keeps the most recent frame; the pipeline reads it without blocking and
reports readiness and pause state so "no frame yet" and "paused" can be
treated as "no hand this frame".
"""

import cv2
import time
import threading
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

from ..core.errors import CAMERA_ERROR_MESSAGE

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30
    buffer_size: int = 1  # Minimal buffering for low latency
    threaded: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            device_id=config.get("device_id", 0),
            width=config.get("width", 1280),
            height=config.get("height", 720),
            fps=config.get("fps", 30),
            buffer_size=config.get("buffer_size", 1),
            warmup_frames=config.get("warmup_frames", 5),
            threaded=config.get("threaded", True),
        )


@dataclass
class Frame:
    """Container for captured frame with metadata."""
    image: np.ndarray
    timestamp: float  # seconds, monotonic
    frame_number: int

    @property
    def rgb(self) -> np.ndarray:
        """Convert BGR to RGB."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)

    def mirrored(self) -> "Frame":
        """Horizontally flipped copy, as the user sees the preview."""
        return Frame(image=cv2.flip(self.image, 1), timestamp=self.timestamp,
                     frame_number=self.frame_number)

    def copy(self) -> "Frame":
        """Deep copy that outlives the capture buffer."""
        return Frame(image=self.image.copy(), timestamp=self.timestamp,
                     frame_number=self.frame_number)

    def encode(self, ext: str = ".png") -> bytes:
        """Encode the image (BGR) to an in-memory file."""
        ok, buf = cv2.imencode(ext, self.image)
        if not ok:
            raise ValueError(f"Could not encode frame {self.frame_number} as {ext}")
        return buf.tobytes()


class Camera:
    """
    Threaded camera capture.

    Example:
        >>> camera = Camera(CameraConfig())
        >>> camera.start()
        >>> frame = camera.read()
        >>> if frame:
        ...     process(frame.image)
        >>> camera.stop()
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_number = 0
        self._running = False
        self._paused = False
        self._error: Optional[str] = None

        # Threading components
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._latest_frame: Optional[Frame] = None

    def start(self) -> bool:
        """
        Start camera capture.

        Returns:
            True if camera started successfully. On failure ``error``
            holds a user-facing message.
        """
        logger.info("Starting camera (device=%d, %dx%d@%dfps)",
                    self.config.device_id, self.config.width, self.config.height, self.config.fps)
        self._error = None
        self._latest_frame = None

        self._cap = cv2.VideoCapture(self.config.device_id)
        if not self._cap.isOpened():
            logger.error("Failed to open camera device %d", self.config.device_id)
            self._cap.release()
            self._cap = None
            self._error = CAMERA_ERROR_MESSAGE
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self.config.buffer_size)

        actual_width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logger.info("Camera initialized: %dx%d@%.0ffps", actual_width, actual_height, actual_fps)

        if self.config.warmup_frames > 0:
            logger.debug("Warming up camera (%d frames)...", self.config.warmup_frames)
            for _ in range(self.config.warmup_frames):
                self._cap.read()

        self._running = True
        self._paused = False
        self._frame_number = 0

        if self.config.threaded:
            self._thread = threading.Thread(target=self._capture_loop, daemon=True)
            self._thread.start()
            logger.debug("Started threaded capture")

        return True

    def stop(self) -> None:
        """Stop camera capture and release resources."""
        logger.info("Stopping camera...")
        self._running = False

        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        with self._lock:
            self._latest_frame = None
        logger.info("Camera stopped")

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def read(self) -> Optional[Frame]:
        """
        Read the latest frame.

        In threaded mode, returns the most recent captured frame.
        In synchronous mode, captures a new frame.

        Returns:
            Frame or None if capture failed or nothing decoded yet
        """
        if not self._running:
            return None

        if self.config.threaded:
            with self._lock:
                return self._latest_frame
        frame = self._capture_frame()
        if frame is not None:
            self._latest_frame = frame
        return frame

    def _capture_frame(self) -> Optional[Frame]:
        """Capture a single frame from the camera."""
        if not self._cap:
            return None

        ret, image = self._cap.read()

        if not ret or image is None:
            logger.warning("Failed to capture frame")
            return None

        self._frame_number += 1

        return Frame(
            image=image,
            timestamp=time.monotonic(),
            frame_number=self._frame_number,
        )

    def _capture_loop(self) -> None:
        """Background thread for continuous frame capture."""
        while self._running:
            if self._paused:
                time.sleep(0.01)
                continue
            frame = self._capture_frame()
            if frame:
                with self._lock:
                    self._latest_frame = frame

    @property
    def is_running(self) -> bool:
        """Check if camera is currently running."""
        return self._running

    @property
    def is_ready(self) -> bool:
        """Stream started and a frame can be read.

        Threaded mode waits for the first decoded frame; synchronous mode
        decodes on ``read()`` so an open device is enough.
        """
        if not self._running:
            return False
        if self.config.threaded:
            return self._latest_frame is not None
        return self._cap is not None

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def resolution(self) -> Tuple[int, int]:
        """Get current camera resolution."""
        return (self.config.width, self.config.height)

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
        return False
