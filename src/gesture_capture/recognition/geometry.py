"""
Landmark Geometry
==================

Pure helpers over hand landmark points given as numpy arrays of
``(x, y, z)``. Distances use x and y only; depth estimates from the
landmark model are too noisy to compare across frames. Angles use the
full 3D vectors.
"""

from typing import Optional

import numpy as np

from ..detection.landmarks import NUM_LANDMARKS, LandmarkIndex


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two points in the image plane."""
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))


def palm_width(landmarks: np.ndarray) -> Optional[float]:
    """Index-MCP to pinky-MCP distance, or None for an incomplete set."""
    if landmarks is None or len(landmarks) < NUM_LANDMARKS:
        return None
    return distance(landmarks[LandmarkIndex.INDEX_MCP], landmarks[LandmarkIndex.PINKY_MCP])


def normalized_distance(a: np.ndarray, b: np.ndarray, palm_w: Optional[float]) -> float:
    """Distance in palm widths.

    Returns 0.0 when palm width is zero or unavailable. Callers must read
    0.0 as "not computable", not as a short distance.
    """
    if not palm_w:
        return 0.0
    return distance(a, b) / palm_w


def vector(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """3D vector pointing from b to a."""
    return np.asarray(a, dtype=np.float64)[:3] - np.asarray(b, dtype=np.float64)[:3]


def cosine_angle(u: np.ndarray, v: np.ndarray) -> float:
    """Cosine similarity of two 3D vectors; -1.0 if either has zero length."""
    nu = float(np.linalg.norm(u))
    nv = float(np.linalg.norm(v))
    if nu == 0.0 or nv == 0.0:
        return -1.0
    return float(np.dot(u, v) / (nu * nv))
