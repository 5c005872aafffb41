"""
Logging setup and capture event logging.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure logging for the application."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class CaptureLogger:
    """Logs capture-sequence events from the bus and keeps a short history."""

    def __init__(self, max_history=200):
        self.logger = logging.getLogger("capture_events")
        self._history = []
        self._max_history = max_history

    def attach(self, bus):
        """Subscribe to the session's event bus."""
        from ..core.events import Events

        bus.subscribe(Events.STABLE_POSE_CHANGED, self.log_pose)
        bus.subscribe(Events.POSE_CAPTURED, self.log_capture)
        bus.subscribe(Events.HINT, self.log_hint)
        bus.subscribe(Events.SESSION_ERROR, self.log_error)
        return self

    def _record(self, kind, **data):
        self._history.append({"timestamp": time.time(), "event": kind, **data})
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def log_pose(self, pose, previous, **_):
        self._record("pose", pose=int(pose), previous=int(previous))
        self.logger.debug("Pose: %d -> %d", previous, pose)

    def log_capture(self, step, **_):
        self._record("capture", step=step)
        self.logger.info("Captured step %d", step)

    def log_hint(self, message, **_):
        self._record("hint", message=message)
        self.logger.info("Hint: %s", message)

    def log_error(self, message, **_):
        self._record("error", message=message)
        self.logger.error("Session error: %s", message)

    def get_history(self, last_n=None):
        """Get recent events."""
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def total_captures(self):
        return sum(1 for e in self._history if e["event"] == "capture")


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
