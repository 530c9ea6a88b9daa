"""3D geometry utilities: plane construction, orientation, fitting."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

_AXES = {"x": 0, "y": 1, "z": 2}


def axis_index(axis: str | int) -> int:
    """Map 'x'/'y'/'z' (or 0-2) to a column index."""
    if isinstance(axis, str):
        key = axis.lower()
        if key not in _AXES:
            raise ValueError(f"Unknown axis '{axis}', expected one of x, y, z")
        return _AXES[key]
    if axis not in (0, 1, 2):
        raise ValueError(f"Axis index must be 0, 1 or 2, got {axis}")
    return int(axis)


def plane_from_points(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> np.ndarray | None:
    """Plane (a, b, c, d) with unit normal through three points.

    Returns None for collinear (degenerate) samples.
    """
    normal = np.cross(p2 - p1, p3 - p1)
    norm = np.linalg.norm(normal)
    if norm < 1e-12:
        return None
    normal = normal / norm
    return np.append(normal, -np.dot(normal, p1))


def fit_plane_lstsq(points: np.ndarray) -> np.ndarray | None:
    """Least-squares plane through ``points`` (smallest singular vector)."""
    if len(points) < 3:
        return None
    centroid = points.mean(axis=0)
    _, s, Vt = np.linalg.svd(points - centroid, full_matrices=False)
    if s[1] < 1e-12:
        # all points on a line: normal is undefined
        return None
    normal = Vt[-1]
    normal = normal / np.linalg.norm(normal)
    return np.append(normal, -np.dot(normal, centroid))


def orient_plane(coefficients: np.ndarray) -> np.ndarray:
    """Flip the plane so the largest-magnitude normal component is positive."""
    coefficients = np.asarray(coefficients, dtype=np.float64)
    normal = coefficients[:3]
    if normal[np.argmax(np.abs(normal))] < 0:
        return -coefficients
    return coefficients
