"""
Visualization Module
=====================

Preview overlay for the capture window: hand box, step progress,
feedback text and an optional debug panel. Display only.
"""

import cv2
import numpy as np
from typing import List, Optional, Tuple
from dataclasses import dataclass


@dataclass
class VisualizerConfig:
    """Visualization settings."""
    show_hand_box: bool = True
    show_steps: bool = True
    show_debug: bool = False
    mirror_preview: bool = True

    # Colors (BGR format)
    box_color: Tuple[int, int, int] = (159, 149, 1)          # Teal
    text_color: Tuple[int, int, int] = (0, 255, 255)         # Yellow
    done_color: Tuple[int, int, int] = (129, 185, 16)        # Emerald
    warning_color: Tuple[int, int, int] = (0, 0, 255)        # Red

    font_scale: float = 0.7
    font_thickness: int = 2

    @classmethod
    def from_dict(cls, config: dict) -> "VisualizerConfig":
        """Create config from dictionary."""
        colors = config.get("colors", {})
        return cls(
            show_hand_box=config.get("show_hand_box", True),
            show_steps=config.get("show_steps", True),
            show_debug=config.get("show_debug", False),
            mirror_preview=config.get("mirror_preview", True),
            box_color=tuple(colors.get("hand_box", [159, 149, 1])),
            text_color=tuple(colors.get("text", [0, 255, 255])),
            done_color=tuple(colors.get("done", [129, 185, 16])),
            warning_color=tuple(colors.get("warning", [0, 0, 255])),
            font_scale=config.get("font_scale", 0.7),
            font_thickness=config.get("font_thickness", 2),
        )


class Visualizer:
    """
    Draws the session snapshot onto preview frames.

    Example:
        >>> viz = Visualizer(VisualizerConfig())
        >>> display = viz.render(frame.image, session.snapshot(), steps=(1, 2, 3))
        >>> cv2.imshow("Capture", display)
    """

    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()
        self._font = cv2.FONT_HERSHEY_SIMPLEX

    def render(self, image: np.ndarray, snapshot, steps=(1, 2, 3)) -> np.ndarray:
        """Full overlay for one preview frame; returns a new image."""
        display = cv2.flip(image, 1) if self.config.mirror_preview else image.copy()

        if self.config.show_hand_box and snapshot.hand_box is not None:
            self.draw_hand_box(display, snapshot.hand_box)
        if self.config.show_steps:
            self.draw_steps(display, snapshot, steps)
        self.draw_feedback(display, snapshot)
        if self.config.show_debug:
            self.draw_debug(display, snapshot)
        return display

    def draw_hand_box(self, image: np.ndarray, box) -> np.ndarray:
        """Draw the normalized hand box, matching the preview mirroring."""
        height, width = image.shape[:2]
        x, y, w, h = box.to_pixels(width, height)
        if self.config.mirror_preview:
            x = width - (x + w)
        cv2.rectangle(image, (x, y), (x + w, y + h), self.config.box_color, 3)
        return image

    def draw_steps(self, image: np.ndarray, snapshot, steps) -> np.ndarray:
        """Step indicators along the bottom edge: done, active, pending."""
        height, width = image.shape[:2]
        x = 20
        y = height - 30
        for step in steps:
            if step in snapshot.captured_steps:
                color = self.config.done_color
            elif step == snapshot.step and snapshot.phase.value.startswith("step"):
                color = self.config.text_color
            else:
                color = (128, 128, 128)
            label = f"Pose {step}"
            cv2.putText(image, label, (x, y), self._font, self.config.font_scale,
                        color, self.config.font_thickness)
            x += cv2.getTextSize(label, self._font, self.config.font_scale,
                                 self.config.font_thickness)[0][0] + 30
        return image

    def draw_feedback(self, image: np.ndarray, snapshot) -> np.ndarray:
        """Large centered text for errors, wrong pose and hints."""
        if snapshot.error:
            self._draw_centered(image, snapshot.error, self.config.warning_color, scale=0.8)
        elif snapshot.wrong_pose:
            self._draw_centered(image, f"Show Pose {snapshot.step}", self.config.warning_color)
        elif snapshot.hint:
            self._draw_centered(image, snapshot.hint, self.config.text_color, scale=1.0)
        elif snapshot.phase.value == "complete":
            self._draw_centered(image, "Done! r: retake", self.config.done_color)
        return image

    def draw_debug(self, image: np.ndarray, snapshot) -> np.ndarray:
        """Counts, palm width and loop rates in the top-left corner."""
        palm = "-" if snapshot.palm_width is None else f"{snapshot.palm_width:.3f}"
        hand = {True: "Right", False: "Left"}.get(snapshot.is_right, "?")
        lines = [
            f"pose: {int(snapshot.pose)}  count: {snapshot.smoothed_count}  raw: {snapshot.raw_count}",
            f"palm: {palm}  hand: {hand}  mirrored: {snapshot.mirrored}",
            f"frame: {snapshot.frame_hz:.1f}Hz  sample: {snapshot.sample_hz:.1f}Hz",
        ]
        if not snapshot.detector_ready:
            lines.append("loading hand model...")
        return self.draw_instructions(image, lines, position="top-left")

    def draw_instructions(self, image: np.ndarray, instructions: List[str],
                          position: str = "bottom-right") -> np.ndarray:
        """Draw instruction text overlay."""
        height, width = image.shape[:2]
        line_height = 20
        margin = 10

        if position == "bottom-right":
            x = width - 220
            y = height - len(instructions) * line_height - margin
        else:  # top-left default
            x = margin
            y = 30

        for i, line in enumerate(instructions):
            cv2.putText(image, line, (x, y + i * line_height),
                        self._font, 0.5, self.config.text_color, 1)
        return image

    def _draw_centered(self, image: np.ndarray, text: str, color, scale: float = 1.2,
                       thickness: int = 2) -> None:
        height, width = image.shape[:2]
        text_size = cv2.getTextSize(text, self._font, scale, thickness)[0]
        x = max(0, (width - text_size[0]) // 2)
        y = (height + text_size[1]) // 2

        cv2.putText(image, text, (x + 2, y + 2), self._font, scale, (0, 0, 0), thickness + 2)
        cv2.putText(image, text, (x, y), self._font, scale, color, thickness)
