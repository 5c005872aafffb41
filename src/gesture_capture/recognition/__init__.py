"""Finger counting and pose stabilization."""
from .finger_classifier import ClassifierConfig, FingerClassifier
from .smoother import CountSmoother, mode_of
from .pose_debouncer import HoldDebouncer, StablePose

__all__ = [
    "ClassifierConfig",
    "FingerClassifier",
    "CountSmoother",
    "mode_of",
    "HoldDebouncer",
    "StablePose",
]
