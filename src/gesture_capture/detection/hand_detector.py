"""
Hand Detection Module - MediaPipe Tasks API
============================================

Single-hand MediaPipe HandLandmarker in VIDEO mode. Loading the model can
take a while, so ``start()`` is safe to call from a background thread and
``is_ready`` tells the frame loop when detection may begin.
"""

import logging
import threading
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from ..core.errors import DETECTOR_ERROR_MESSAGE
from ..utils.logger import log_timing
from .landmarks import HandLandmarks, Landmark

logger = logging.getLogger(__name__)

HAND_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
DEFAULT_MODEL_PATH = Path.home() / ".cache" / "gesture_capture" / "hand_landmarker.task"


@dataclass
class HandDetectorConfig:
    """Configuration for hand detector."""
    model_path: str = ""
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    min_presence_confidence: float = 0.5

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path", ""),
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
        )


def download_model(url: str, save_path: Path) -> bool:
    """Download the hand landmarker model if not present."""
    if save_path.exists():
        logger.info("Model already exists at %s", save_path)
        return True

    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading hand landmarker model to %s...", save_path)
        urllib.request.urlretrieve(url, save_path)
        logger.info("Model download complete")
        return True
    except OSError as e:
        logger.error("Failed to download model: %s", e)
        return False


class HandDetector:
    """
    Single-hand landmark detector using MediaPipe HandLandmarker.

    Example:
        >>> detector = HandDetector(HandDetectorConfig())
        >>> detector.start()
        >>> hand = detector.detect(rgb_image, timestamp_ms)  # RGB format!
        >>> detector.stop()
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._ready = threading.Event()
        self._error: Optional[str] = None
        self._last_timestamp_ms = -1

    @log_timing
    def start(self) -> bool:
        """Load the model. Returns False and sets ``error`` on failure."""
        self._error = None
        model_path = Path(self.config.model_path) if self.config.model_path else DEFAULT_MODEL_PATH

        if not model_path.exists() and not download_model(HAND_LANDMARKER_MODEL_URL, model_path):
            self._error = DETECTOR_ERROR_MESSAGE
            return False

        try:
            options = vision.HandLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=str(model_path)),
                running_mode=vision.RunningMode.VIDEO,
                num_hands=1,
                min_hand_detection_confidence=self.config.min_detection_confidence,
                min_hand_presence_confidence=self.config.min_presence_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError, OSError) as e:
            logger.error("Failed to initialize HandLandmarker: %s", e)
            self._error = DETECTOR_ERROR_MESSAGE
            return False

        self._last_timestamp_ms = -1
        self._ready.set()
        logger.info("HandLandmarker initialized with model: %s", model_path)
        return True

    def stop(self) -> None:
        """Release resources."""
        self._ready.clear()
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
            logger.info("HandLandmarker stopped")

    def detect(self, image: np.ndarray, timestamp_ms: int) -> Optional[HandLandmarks]:
        """
        Detect at most one hand in the given image.

        Args:
            image: RGB image as numpy array (H, W, 3)
            timestamp_ms: Frame timestamp; VIDEO mode requires it to increase

        Returns:
            HandLandmarks, or None when no complete hand was found
        """
        if not self.is_ready:
            return None

        # VIDEO mode rejects non-increasing timestamps
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(image))
        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)

        if not result.hand_landmarks:
            return None

        handedness = None
        score = 0.0
        if result.handedness:
            handedness = result.handedness[0][0].category_name
            score = result.handedness[0][0].score

        try:
            return HandLandmarks(
                landmarks=[Landmark(x=lm.x, y=lm.y, z=lm.z) for lm in result.hand_landmarks[0]],
                handedness=handedness,
                score=score,
            )
        except ValueError as e:
            logger.debug("Dropping partial landmark set: %s", e)
            return None

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set() and self._landmarker is not None

    @property
    def error(self) -> Optional[str]:
        return self._error

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
