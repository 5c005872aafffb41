"""Session-level failures. Per-frame problems never become exceptions."""


class GestureCaptureError(Exception):
    """Base class for capture pipeline errors."""


class ManualOverrideDisabled(GestureCaptureError):
    """Manual capture was requested but is switched off in configuration."""


CAMERA_ERROR_MESSAGE = (
    "Could not access webcam. Please ensure you have a webcam and granted permissions."
)
DETECTOR_ERROR_MESSAGE = "Failed to load hand detection model."
