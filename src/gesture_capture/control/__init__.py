"""Capture-sequence control."""
from .capture_sequence import CaptureSequence, Phase, SequenceConfig, SequenceState
from .timers import Timer, TimerQueue

__all__ = ["CaptureSequence", "Phase", "SequenceConfig", "SequenceState",
           "Timer", "TimerQueue"]
