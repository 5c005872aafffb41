"""
Gesture Capture
================

Hands-free photo capture: hold up one, two, then three fingers and a
frame is captured for each pose.

Modules:
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmarks and the display hand box
    - recognition: Finger counting, smoothing and hold debounce
    - control: Capture-sequence state machine and its timers
    - core: Session orchestration, events and errors
    - utils: Configuration, logging, loop rates, preview overlay
"""

__version__ = "1.0.0"
