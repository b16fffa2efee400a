from __future__ import annotations

import numpy as np

ZERO_VECTOR_ANGLE_DEG = 90.0


def as_vector(values: np.ndarray | list[float] | tuple[float, ...]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def magnitude(v: np.ndarray | list[float]) -> float:
    return float(np.linalg.norm(as_vector(v)))


def angle_between(v1: np.ndarray | list[float], v2: np.ndarray | list[float]) -> float:
    """Angle in degrees between two vectors. A zero-length operand yields exactly 90."""
    a = as_vector(v1)
    b = as_vector(v2)
    mag1 = float(np.linalg.norm(a))
    mag2 = float(np.linalg.norm(b))
    if mag1 == 0.0 or mag2 == 0.0:
        return ZERO_VECTOR_ANGLE_DEG
    cos_theta = float(np.clip(np.dot(a, b) / (mag1 * mag2), -1.0, 1.0))
    return float(np.degrees(np.arccos(cos_theta)))
