"""
Lightweight event bus for the capture pipeline's outputs.

The session publishes pose changes, captures, hints and debug snapshots
here; the UI and persistence layers subscribe. One bus per session, passed
in explicitly, so inspection never depends on global state.

Usage:
    bus = EventBus()
    bus.subscribe(Events.POSE_CAPTURED, on_capture)
    bus.emit(Events.POSE_CAPTURED, step=1, frame=frame)
"""

import logging
import threading
from collections import defaultdict
from typing import Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Thread-safe publish/subscribe event bus.

    Listeners run synchronously in priority order. A failing listener is
    logged and skipped; it never breaks the loop that emitted the event.
    """

    def __init__(self):
        self._listeners = defaultdict(list)  # event_name -> [(priority, callback)]
        self._lock = threading.Lock()

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register a listener for an event.

        Args:
            event_name: Event to listen for
            callback: Function to call. Receives **kwargs from emit().
            priority: Higher priority callbacks run first (default 0)
        """
        with self._lock:
            self._listeners[event_name].append((priority, callback))
            self._listeners[event_name].sort(key=lambda x: -x[0])
        logger.debug("Subscribed to '%s': %s (priority=%d)",
                     event_name, getattr(callback, "__name__", callback), priority)

    def emit(self, event_name: str, **kwargs):
        """Emit an event to all registered listeners."""
        with self._lock:
            listeners = list(self._listeners.get(event_name, []))

        for priority, callback in listeners:
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, getattr(callback, "__name__", callback), e)


class Events:
    """Standard event names used throughout the pipeline."""

    # Recognition
    STABLE_POSE_CHANGED = "stable_pose_changed"
    HAND_BOX = "hand_box"
    DEBUG_SNAPSHOT = "debug_snapshot"

    # Capture sequence
    POSE_CAPTURED = "pose_captured"
    SEQUENCE_COMPLETE = "sequence_complete"
    SEQUENCE_RESET = "sequence_reset"
    WRONG_POSE = "wrong_pose"
    HINT = "hint"

    # Lifecycle
    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"
    SESSION_ERROR = "session_error"
    DETECTOR_READY = "detector_ready"
