"""
Gesture Capture - hands-free photo capture by finger-count poses.
Command-line entry point.

Usage:
    gesture-capture                       # 1-2-3 pose sequence
    gesture-capture --mode single         # single shot on pose 3
    gesture-capture --output shots --debug
    gesture-capture --no-window           # headless, logs only
"""

import os
import time
import signal
import argparse
import logging
from pathlib import Path

import cv2
import numpy as np

from .capture.camera import Camera
from .core.errors import ManualOverrideDisabled
from .core.events import Events
from .core.session import CaptureSession
from .control.capture_sequence import Phase
from .detection.hand_detector import HandDetector, HandDetectorConfig
from .utils.config import MODE_PRESETS, AppConfig, create_app_config
from .utils.logger import CaptureLogger, setup_logging
from .utils.visualization import Visualizer

logger = logging.getLogger(__name__)

WINDOW_NAME = "Gesture Capture"
KEY_HELP = ["c: capture now", "r: retake / retry", "q: quit"]


class CaptureApp:
    """Wires camera, detector, session and preview window together."""

    def __init__(self, config: AppConfig, show_window: bool = True):
        self._config = config
        self._show_window = show_window
        self._running = False
        self._session_index = 0

        self._camera = Camera(config.camera)
        self._detector = HandDetector(HandDetectorConfig.from_dict(config.detector))
        self.session = CaptureSession(self._camera, self._detector, config.session)
        self._visualizer = Visualizer(config.visualization)
        width, height = self._camera.resolution
        self._blank = np.zeros((height, width, 3), dtype=np.uint8)
        self._event_logger = CaptureLogger().attach(self.session.bus)

        self.session.bus.subscribe(Events.SEQUENCE_COMPLETE, self._on_complete)
        logger.info("Gesture capture initialized (mode=%s)", config.mode)

    def _on_complete(self, images, manual=False, **_):
        saved = save_images(images, self._config.output_dir, self._session_index)
        self._session_index += 1
        logger.info("Saved %d image(s)%s: %s", len(saved),
                    " (manual)" if manual else "", ", ".join(str(p) for p in saved))

    def run(self) -> int:
        """Main loop; returns a process exit code."""
        self._running = True
        self.session.start()
        steps = self._config.session.sequence.steps
        delay_ms = max(1, int(1000 / max(1, self._config.camera.fps)))

        try:
            while self._running:
                self.session.tick()

                if self._show_window:
                    frame = self._camera.read()
                    # Blank canvas while the camera is starting or has failed
                    image = frame.image if frame is not None else self._blank
                    display = self._visualizer.render(image, self.session.snapshot(), steps)
                    self._visualizer.draw_instructions(display, KEY_HELP)
                    cv2.imshow(WINDOW_NAME, display)
                    self._handle_key(cv2.waitKey(delay_ms) & 0xFF)
                else:
                    snapshot = self.session.snapshot()
                    if snapshot.phase is Phase.ERROR:
                        # No retry key without a window
                        logger.error("Stopping: %s", snapshot.error)
                        break
                    time.sleep(delay_ms / 1000.0)
        finally:
            failed = self.session.snapshot().phase is Phase.ERROR
            self._shutdown()

        return 1 if failed else 0

    def _handle_key(self, key: int) -> None:
        if key in (ord("q"), 27):  # 27 = ESC
            self._running = False
        elif key == ord("c"):
            try:
                self.session.capture_now()
            except ManualOverrideDisabled:
                logger.warning("Manual capture is disabled in this configuration")
        elif key == ord("r"):
            if self.session.snapshot().phase is Phase.ERROR:
                self.session.retry()
            else:
                self.session.retake()

    def _shutdown(self):
        logger.info("Shutting down...")
        self._running = False
        self.session.shutdown()
        if self._show_window:
            cv2.destroyAllWindows()
        logger.info("Shutdown complete. %d capture(s) this run.",
                    self._event_logger.total_captures)

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def save_images(images: dict, output_dir, session_index: int = 0) -> list:
    """Write captured frames as PNG files, one per step."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    stamp = time.strftime("%Y%m%d-%H%M%S")
    paths = []
    for step, frame in sorted(images.items()):
        path = out / f"capture-{stamp}-{session_index:02d}-pose{step}.png"
        path.write_bytes(frame.encode(".png"))
        paths.append(path)
    return paths


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Hands-free photo capture by finger-count poses"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--mode", choices=sorted(MODE_PRESETS), default=None,
        help="Capture mode (default: from config, else 'sequence')"
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Directory for captured PNG files"
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Debug logging and on-screen pipeline state"
    )
    parser.add_argument(
        "--no-window", action="store_true",
        help="Run without the preview window"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    config = create_app_config(args.config, mode=args.mode)
    if args.output:
        config.output_dir = args.output
    if args.debug:
        config.log_level = "DEBUG"
        config.visualization.show_debug = True

    setup_logging(level=config.log_level, log_file=config.log_file)
    logger.info("Writing captures to %s", os.path.abspath(config.output_dir))

    app = CaptureApp(config, show_window=not args.no_window)
    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
