import math
import random
from typing import Sequence, Tuple

import numpy as np

# ---------- Frame settings ----------
WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=float)
FRAME_EPSILON = 1e-6


def vec3(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=float).reshape(3)


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector along v, or the zero vector when v has no length."""
    n = np.linalg.norm(v)
    if n < FRAME_EPSILON or not math.isfinite(n):
        return np.zeros(3, dtype=float)
    return v / n


def local_frame(direction: np.ndarray, up: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Right and local up axes for a growth direction.

    The world up only picks the orientation of the right axis; if it is
    (nearly) parallel to the direction another reference axis is used.
    """
    right = np.cross(up, direction)
    if np.linalg.norm(right) < FRAME_EPSILON:
        # find a vector not parallel to direction
        if abs(direction[1]) < 0.9:
            ref = np.array([0.0, 1.0, 0.0])
        else:
            ref = np.array([1.0, 0.0, 0.0])
        right = np.cross(ref, direction)
    right = normalize(right)
    local_up = normalize(np.cross(direction, right))
    return right, local_up


def rotate_about(v: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    # Rodrigues rotation, axis must be unit length; a non-finite angle gives NaN
    c, s = np.cos(angle), np.sin(angle)
    return v * c + np.cross(axis, v) * s + axis * np.dot(axis, v) * (1.0 - c)


def lerp(a, b, t: float):
    return a*(1-t) + b*t


def gen_range(rng: random.Random, lo: float, hi: float) -> float:
    """Uniform draw from the half-open range [lo, hi)."""
    return lo + (hi - lo) * rng.random()
