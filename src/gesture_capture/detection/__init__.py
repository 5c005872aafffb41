"""Hand landmarks and hand box. The MediaPipe adapter lives in ``hand_detector``."""
from .landmarks import HandLandmarks, Landmark, LandmarkIndex
from .hand_box import HandBox, HandBoxConfig, HandBoxTracker

__all__ = ["HandLandmarks", "Landmark", "LandmarkIndex",
           "HandBox", "HandBoxConfig", "HandBoxTracker"]
