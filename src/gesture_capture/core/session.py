"""
Capture session orchestrator.

Owns every piece of per-camera-session state and drives it from two
independent loops on one thread:

    frame loop (display rate, best effort)
        Camera -> HandDetector -> FingerClassifier (raw count)
                               -> HandBoxTracker   (display box)
    sampling loop (fixed rate, default 24 Hz)
        raw count -> CountSmoother -> HoldDebouncer -> CaptureSequence

Detection cost varies per frame while hold and cooldown timing need a
steady clock, so the loops keep separate cadences. ``tick()`` is a
cooperative scheduler that runs each loop when it is due.

The model loads on a background thread; a lock serializes that thread's
ready/error report with the loop steps.
"""

import time
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..control.capture_sequence import CaptureSequence, Phase, SequenceConfig
from ..control.timers import TimerQueue
from ..detection.hand_box import HandBox, HandBoxConfig, HandBoxTracker
from ..recognition.finger_classifier import ClassifierConfig, FingerClassifier
from ..recognition.pose_debouncer import HoldDebouncer, StablePose
from ..recognition.smoother import CountSmoother
from ..utils.performance import LoopRate
from .errors import CAMERA_ERROR_MESSAGE, DETECTOR_ERROR_MESSAGE
from .events import EventBus, Events

logger = logging.getLogger(__name__)

DETECTOR_JOIN_TIMEOUT_S = 5.0


@dataclass
class SmoothingConfig:
    """Sampling loop settings."""
    sample_hz: float = 24.0
    window: int = 5
    hold_ms: float = 150.0

    @classmethod
    def from_dict(cls, config: dict) -> "SmoothingConfig":
        """Create config from dictionary."""
        return cls(
            sample_hz=config.get("sample_hz", 24.0),
            window=config.get("window", 5),
            hold_ms=config.get("hold_ms", 150.0),
        )

    @property
    def interval_ms(self) -> float:
        return 1000.0 / self.sample_hz


@dataclass
class SessionConfig:
    """Everything one capture session needs."""
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    hand_box: HandBoxConfig = field(default_factory=HandBoxConfig)
    sequence: SequenceConfig = field(default_factory=SequenceConfig)
    mirror_capture: bool = True  # Store captures as the mirrored preview shows them

    @classmethod
    def from_dict(cls, config: dict) -> "SessionConfig":
        """Create config from dictionary."""
        return cls(
            classifier=ClassifierConfig.from_dict(config.get("classifier", {})),
            smoothing=SmoothingConfig.from_dict(config.get("smoothing", {})),
            hand_box=HandBoxConfig.from_dict(config.get("hand_box", {})),
            sequence=SequenceConfig.from_dict(config.get("sequence", {})),
            mirror_capture=config.get("mirror_capture", True),
        )


@dataclass
class SessionSnapshot:
    """Read-only view of the pipeline for UI and debug display."""
    pose: StablePose
    raw_count: int
    smoothed_count: int
    palm_width: Optional[float]
    handedness: Optional[str]
    hand_box: Optional[HandBox]
    step: int
    phase: Phase
    wrong_pose: bool
    captured_steps: List[int]
    hint: Optional[str]
    error: Optional[str]
    detector_ready: bool
    mirrored: bool
    frame_hz: float = 0.0
    sample_hz: float = 0.0

    @property
    def is_right(self) -> Optional[bool]:
        if self.handedness is None:
            return None
        return self.handedness == "Right"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pose": int(self.pose),
            "count": self.smoothed_count,
            "raw_count": self.raw_count,
            "palm_width": self.palm_width,
            "is_right": self.is_right,
            "mirrored": self.mirrored,
            "step": self.step,
            "phase": self.phase.value,
            "wrong_pose": self.wrong_pose,
        }


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class CaptureSession:
    """
    One camera session of the gesture capture pipeline.

    Args:
        camera: Frame source (``start``, ``stop``, ``read``, ``is_ready``,
            ``is_paused``, ``error``)
        detector: Landmark model (``start``, ``detect``, ``is_ready``, ``error``)
        config: Session configuration
        bus: Event bus for outputs; a private one is created if omitted
        clock: Millisecond clock used by ``tick()`` when no time is given

    Example:
        >>> session = CaptureSession(Camera(), HandDetector())
        >>> session.start()
        >>> while session.running:
        ...     session.tick()
        ...     show(session.snapshot())
        >>> session.stop()
    """

    def __init__(self, camera, detector, config: Optional[SessionConfig] = None,
                 bus: Optional[EventBus] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.config = config or SessionConfig()
        self.bus = bus or EventBus()
        self._camera = camera
        self._detector = detector
        self._clock = clock or _monotonic_ms
        self._lock = threading.RLock()

        self._timers = TimerQueue()
        self.classifier = FingerClassifier(self.config.classifier)
        self.smoother = CountSmoother(self.config.smoothing.window)
        self.debouncer = HoldDebouncer(self.config.smoothing.hold_ms)
        self.box_tracker = HandBoxTracker(self.config.hand_box)
        self.sequence = CaptureSequence(self._grab_frame, self._timers,
                                        self.config.sequence, self.bus)
        self.frame_rate = LoopRate()
        self.sample_rate = LoopRate()

        self._running = False
        self._generation = 0
        self._current_frame = None
        self._last_detect_ts: Optional[int] = None
        self._next_sample_ms: Optional[float] = None
        self._detector_thread: Optional[threading.Thread] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, now_ms: Optional[float] = None, wait_for_detector: bool = False) -> bool:
        """Start the frame source and begin loading the model.

        Returns:
            False if the frame source failed; the session is then in the
            ERROR phase until ``retry()``.
        """
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._reset_pipeline()
            self.sequence.retake()

        logger.info("Starting capture session")
        if not self._camera.start():
            self._fail(getattr(self._camera, "error", None) or CAMERA_ERROR_MESSAGE)
            return False

        with self._lock:
            self._running = True
            self._next_sample_ms = now
        self.bus.emit(Events.SESSION_STARTED)

        if self._detector.is_ready:
            self.bus.emit(Events.DETECTOR_READY)
        elif wait_for_detector:
            self._init_detector(generation)
        else:
            self._detector_thread = threading.Thread(
                target=self._init_detector, args=(generation,), daemon=True,
                name="detector-init",
            )
            self._detector_thread.start()

        return self._running

    def _init_detector(self, generation: int) -> None:
        try:
            ok = self._detector.start()
        except Exception as e:
            logger.exception("Detector initialization raised: %s", e)
            ok = False

        with self._lock:
            if generation != self._generation:
                logger.debug("Ignoring detector init result from a stopped session")
                return
        if ok:
            logger.info("Hand detector ready")
            self.bus.emit(Events.DETECTOR_READY)
        else:
            self._fail(getattr(self._detector, "error", None) or DETECTOR_ERROR_MESSAGE)

    def stop(self) -> None:
        """Halt both loops, cancel every timer, then release the camera."""
        with self._lock:
            was_running = self._running
            self._running = False
            self._generation += 1
            self._timers.cancel_all()
            self.sequence.close()
            self._reset_pipeline()

        self._camera.stop()
        if was_running:
            logger.info("Capture session stopped")
            self.bus.emit(Events.SESSION_STOPPED)

    def shutdown(self) -> None:
        """Stop the session and unload the model."""
        self.stop()
        thread = self._detector_thread
        if thread is not None and thread.is_alive():
            logger.debug("Waiting for model loading to finish...")
            thread.join(timeout=DETECTOR_JOIN_TIMEOUT_S)
        self._detector_thread = None
        self._detector.stop()

    def retry(self, now_ms: Optional[float] = None) -> bool:
        """Restart the whole session from step 1, e.g. after an error."""
        logger.info("Retrying capture session")
        self.stop()
        return self.start(now_ms)

    def retake(self) -> None:
        """Discard captured images and start the sequence over."""
        with self._lock:
            if self.sequence.state.phase is Phase.ERROR:
                logger.warning("Retake requested in error state, use retry()")
                return
            self._reset_pipeline()
            self.sequence.retake()

    def capture_now(self, now_ms: Optional[float] = None) -> bool:
        """Manual override: complete the sequence from the current frame.

        Raises:
            ManualOverrideDisabled: if switched off in configuration
        """
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            return self.sequence.force_complete(now)

    def _fail(self, message: str) -> None:
        with self._lock:
            self._running = False
            self._timers.cancel_all()
            self.sequence.fail(message)
            self._reset_pipeline()
        logger.error("Capture session failed: %s", message)
        self.bus.emit(Events.SESSION_ERROR, message=message)

    def _reset_pipeline(self) -> None:
        self.classifier.reset()
        self.smoother.reset()
        self.debouncer.reset()
        self.box_tracker.reset()
        self.frame_rate.reset()
        self.sample_rate.reset()
        self._current_frame = None
        self._last_detect_ts = None

    # =========================================================================
    # Loops
    # =========================================================================

    def tick(self, now_ms: Optional[float] = None) -> None:
        """Run whichever loop steps are due at ``now_ms``."""
        now = self._clock() if now_ms is None else now_ms
        self.on_frame(now)

        with self._lock:
            due = self._running and self._next_sample_ms is not None and now >= self._next_sample_ms
        if due:
            self.on_sample(now)
            with self._lock:
                if self._next_sample_ms is not None:
                    self._next_sample_ms += self.config.smoothing.interval_ms
                    if now >= self._next_sample_ms:
                        # Fell behind: resume the fixed cadence from now
                        self._next_sample_ms = now + self.config.smoothing.interval_ms

        self.poll_timers(now)

    def on_frame(self, now_ms: float) -> None:
        """Frame loop step: detect landmarks, update raw count and hand box.

        Never raises; a failing frame counts as "no hand this frame".
        """
        with self._lock:
            if not self._running:
                return
            self.frame_rate.tick(now_ms)

            hand = None
            try:
                frame = self._read_frame()
                if frame is not None and self._detector.is_ready:
                    timestamp = frame.timestamp_ms
                    if timestamp == self._last_detect_ts:
                        return
                    self._last_detect_ts = timestamp
                    with self.frame_rate.measure("detection"):
                        hand = self._detector.detect(frame.rgb, timestamp)
                self._current_frame = frame
            except Exception as e:
                logger.warning("Frame processing failed, treating as no hand: %s", e)
                hand = None

            self.classifier.update(hand, now_ms)
            box = self.box_tracker.update(hand, now_ms)
            self.bus.emit(Events.HAND_BOX, box=box)

    def _read_frame(self):
        """Current frame, or None when the source is not ready or paused."""
        if not self._camera.is_ready or self._camera.is_paused:
            return None
        return self._camera.read()

    def on_sample(self, now_ms: float) -> None:
        """Sampling loop step: smooth, debounce, drive the sequence."""
        with self._lock:
            if not self._running or not self._detector.is_ready:
                return
            self.sample_rate.tick(now_ms)

            smoothed = self.smoother.push(self.classifier.raw_count)
            previous = self.debouncer.stable_pose
            pose = self.debouncer.update(smoothed, now_ms)

            if pose != previous:
                logger.debug("Stable pose %d -> %d", previous, pose)
                self.bus.emit(Events.STABLE_POSE_CHANGED, pose=pose, previous=previous)
                self.sequence.on_pose(pose, now_ms)

            self.bus.emit(Events.DEBUG_SNAPSHOT, snapshot=self.snapshot())

    def poll_timers(self, now_ms: float) -> int:
        """Fire due hint and cooldown timers."""
        with self._lock:
            if not self._running:
                return 0
            return self._timers.poll(now_ms)

    def _grab_frame(self):
        frame = self._current_frame
        if frame is None:
            return None
        return frame.mirrored() if self.config.mirror_capture else frame.copy()

    # =========================================================================
    # State
    # =========================================================================

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            state = self.sequence.state
            return SessionSnapshot(
                pose=self.debouncer.stable_pose,
                raw_count=self.classifier.raw_count,
                smoothed_count=self.smoother.smoothed,
                palm_width=self.classifier.palm_width,
                handedness=self.classifier.handedness,
                hand_box=self.box_tracker.box,
                step=state.step,
                phase=state.phase,
                wrong_pose=state.wrong_pose,
                captured_steps=sorted(state.images),
                hint=state.hint,
                error=state.error,
                detector_ready=bool(self._detector.is_ready),
                mirrored=self.config.mirror_capture,
                frame_hz=self.frame_rate.hz,
                sample_hz=self.sample_rate.hz,
            )

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending_timers(self) -> int:
        return self._timers.pending

    @property
    def images(self) -> Dict[int, Any]:
        return dict(self.sequence.state.images)
