"""
Capture-sequence controller.

Drives the "show pose 1, then 2, then 3" photo sequence from the stable
pose stream:
    - correct pose for the current step: capture the frame, advance,
      start the cooldown
    - any other raised pose: flag ``wrong_pose`` and arm a "try again" hint
    - no pose: arm a "raise your hand" hint
    - during cooldown every pose change is ignored, so one physical
      gesture cannot be captured twice or leak into the next step

Manual capture, retake, close and the error state are explicit
transitions, called by the session.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from ..core.errors import ManualOverrideDisabled
from ..core.events import EventBus, Events
from ..recognition.pose_debouncer import StablePose
from .timers import Timer, TimerQueue

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Controller phase. STEPn waits for pose n."""
    STEP1 = "step1"
    STEP2 = "step2"
    STEP3 = "step3"
    COMPLETE = "complete"
    ERROR = "error"

    @classmethod
    def for_step(cls, step: int) -> "Phase":
        return {1: cls.STEP1, 2: cls.STEP2, 3: cls.STEP3}[step]


@dataclass
class SequenceConfig:
    """Capture sequence settings."""
    steps: Tuple[int, ...] = (1, 2, 3)  # Poses to show, in order
    cooldown_ms: float = 1000.0
    wrong_pose_timeout_ms: float = 2000.0
    idle_hint: bool = True  # Hint when no hand is raised for a while
    allow_manual_override: bool = True

    def __post_init__(self):
        self.steps = tuple(int(s) for s in self.steps)
        if not self.steps or any(s not in (1, 2, 3) for s in self.steps):
            raise ValueError(f"sequence steps must be poses 1..3, got {self.steps}")

    @classmethod
    def from_dict(cls, config: dict) -> "SequenceConfig":
        """Create config from dictionary."""
        return cls(
            steps=tuple(config.get("steps", (1, 2, 3))),
            cooldown_ms=config.get("cooldown_ms", 1000.0),
            wrong_pose_timeout_ms=config.get("wrong_pose_timeout_ms", 2000.0),
            idle_hint=config.get("idle_hint", True),
            allow_manual_override=config.get("allow_manual_override", True),
        )


@dataclass
class SequenceState:
    """Observable controller state."""
    step: int = 1
    phase: Phase = Phase.STEP1
    images: Dict[int, Any] = field(default_factory=dict)
    wrong_pose: bool = False
    last_capture_ms: Optional[float] = None
    hint: Optional[str] = None
    error: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.phase is Phase.COMPLETE

    @property
    def captured_count(self) -> int:
        return len(self.images)


class CaptureSequence:
    """
    Finite-state controller on top of the stable pose.

    Args:
        grab_frame: Returns the frame to store on capture (or None)
        timers: Timer queue polled by the owning loop
        config: Sequence settings
        bus: Optional event bus for captures, hints and resets

    Example:
        >>> sequence = CaptureSequence(camera_frame, TimerQueue())
        >>> sequence.on_pose(StablePose.ONE, now_ms)
        1
        >>> sequence.state.step
        2
    """

    def __init__(self, grab_frame: Callable[[], Any], timers: TimerQueue,
                 config: Optional[SequenceConfig] = None,
                 bus: Optional[EventBus] = None):
        self.config = config or SequenceConfig()
        self._grab_frame = grab_frame
        self._timers = timers
        self._bus = bus
        self._step_index = 0
        self.state = self._initial_state()
        self._hint_timer: Optional[Timer] = None
        self._cooldown_timer: Optional[Timer] = None
        self._latest_pose = StablePose.UNKNOWN

    def _initial_state(self) -> SequenceState:
        first = self.config.steps[0]
        return SequenceState(step=first, phase=Phase.for_step(first))

    # =========================================================================
    # Pose-driven transitions
    # =========================================================================

    def on_pose(self, pose: StablePose, now_ms: float) -> Optional[int]:
        """Handle a stable pose change.

        Returns:
            The captured step number, or None if nothing was captured
        """
        pose = StablePose(pose)
        self._latest_pose = pose

        if self.state.phase in (Phase.COMPLETE, Phase.ERROR):
            return None
        if self.in_cooldown(now_ms):
            logger.debug("Ignoring pose %d during cooldown", pose)
            return None

        if pose == StablePose.UNKNOWN and self.state.wrong_pose and not self.config.idle_hint:
            # Hand dropped after a wrong pose: the try-again timer keeps running
            return None

        self._cancel_hint()

        if pose == self.state.step:
            return self._capture(now_ms)

        if pose != StablePose.UNKNOWN:
            if not self.state.wrong_pose:
                logger.info("Wrong pose %d, expected %d", pose, self.state.step)
            self.state.wrong_pose = True
            self._emit(Events.WRONG_POSE, expected=self.state.step, pose=int(pose))
            self._hint_timer = self._timers.call_later(
                self.config.wrong_pose_timeout_ms, self._on_wrong_pose_timeout,
                now_ms, name="wrong_pose",
            )
        elif self.config.idle_hint:
            self._hint_timer = self._timers.call_later(
                self.config.wrong_pose_timeout_ms, self._on_idle_timeout,
                now_ms, name="idle_hint",
            )
        return None

    def in_cooldown(self, now_ms: float) -> bool:
        last = self.state.last_capture_ms
        return last is not None and now_ms - last < self.config.cooldown_ms

    def _capture(self, now_ms: float) -> Optional[int]:
        step = self.state.step
        frame = self._grab_frame()
        if frame is None:
            logger.warning("Pose %d matched but no frame is available to capture", step)
            return None

        self.state.images[step] = frame
        self.state.last_capture_ms = now_ms
        self.state.wrong_pose = False
        self.state.hint = None
        logger.info("Pose %d captured", step)
        self._emit(Events.POSE_CAPTURED, step=step, frame=frame)

        self._step_index += 1
        if self._step_index >= len(self.config.steps):
            self.state.phase = Phase.COMPLETE
            logger.info("Capture sequence complete (%d images)", len(self.state.images))
            self._emit(Events.SEQUENCE_COMPLETE, images=dict(self.state.images))
        else:
            self.state.step = self.config.steps[self._step_index]
            self.state.phase = Phase.for_step(self.state.step)
            self._cooldown_timer = self._timers.call_later(
                self.config.cooldown_ms, self._on_cooldown_end, now_ms, name="cooldown",
            )
        return step

    # =========================================================================
    # Timer callbacks
    # =========================================================================

    def _on_wrong_pose_timeout(self, now_ms: float):
        self._hint_timer = None
        self._set_hint(f"Try again: show Pose {self.state.step}")
        self.state.wrong_pose = False

    def _on_idle_timeout(self, now_ms: float):
        self._hint_timer = None
        self._set_hint(f"Raise your hand for Pose {self.state.step}")
        self.state.wrong_pose = False

    def _on_cooldown_end(self, now_ms: float):
        # A correct pose already held when the cooldown ends produced no
        # change event, so evaluate it here.
        self._cooldown_timer = None
        if self._latest_pose == self.state.step:
            self.on_pose(self._latest_pose, now_ms)

    def _set_hint(self, message: str):
        self.state.hint = message
        logger.info("Hint: %s", message)
        self._emit(Events.HINT, message=message, step=self.state.step)

    # =========================================================================
    # Explicit transitions
    # =========================================================================

    def force_complete(self, now_ms: float) -> bool:
        """Manual override: fill every step from the current frame and finish.

        Raises:
            ManualOverrideDisabled: if switched off in configuration
        """
        if not self.config.allow_manual_override:
            raise ManualOverrideDisabled("manual capture is disabled")
        if self.state.phase in (Phase.COMPLETE, Phase.ERROR):
            return False

        frame = self._grab_frame()
        if frame is None:
            logger.warning("Manual capture requested but no frame is available")
            return False

        self._cancel_timers()
        for step in self.config.steps:
            self.state.images[step] = frame
        self._step_index = len(self.config.steps)
        self.state.step = self.config.steps[-1]
        self.state.phase = Phase.COMPLETE
        self.state.wrong_pose = False
        self.state.hint = None
        self.state.last_capture_ms = now_ms
        logger.info("Manual capture: sequence completed without pose detection")
        self._emit(Events.SEQUENCE_COMPLETE, images=dict(self.state.images), manual=True)
        return True

    def retake(self):
        """Back to the first step with no images and no armed timers."""
        self._reset()
        logger.info("Capture sequence reset")
        self._emit(Events.SEQUENCE_RESET)

    def close(self):
        """Drop partial state when the session ends."""
        self._reset()

    def fail(self, message: str):
        """Enter the terminal error phase; only ``retake()`` leaves it."""
        self._cancel_timers()
        self.state.phase = Phase.ERROR
        self.state.error = message
        self.state.wrong_pose = False

    def _reset(self):
        self._cancel_timers()
        self._step_index = 0
        self._latest_pose = StablePose.UNKNOWN
        self.state = self._initial_state()

    def _cancel_hint(self):
        if self._hint_timer is not None:
            self._hint_timer.cancel()
            self._hint_timer = None

    def _cancel_timers(self):
        self._cancel_hint()
        if self._cooldown_timer is not None:
            self._cooldown_timer.cancel()
            self._cooldown_timer = None

    def _emit(self, event_name: str, **kwargs):
        if self._bus is not None:
            self._bus.emit(event_name, **kwargs)

    @property
    def final_image(self) -> Any:
        """Image of the last step once complete, else None."""
        if not self.state.complete:
            return None
        return self.state.images.get(self.config.steps[-1])

    @property
    def has_pending_timers(self) -> bool:
        return any(t is not None and t.active for t in (self._hint_timer, self._cooldown_timer))
