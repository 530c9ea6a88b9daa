"""RANSAC plane fitting with least-squares refinement.

The estimator is a pure function of its inputs and the supplied random
generator: the same seed gives the same plane.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from tabletop.core.contracts import PlaneModel, PointBuffer
from tabletop.utils.geometry import fit_plane_lstsq, orient_plane, plane_from_points

logger = logging.getLogger(__name__)


@dataclass
class PlaneFit:
    model: PlaneModel
    inliers: np.ndarray  # sorted indices into the fitted array


def _select_inliers(xyz: np.ndarray, coefficients: np.ndarray, threshold: float) -> np.ndarray:
    distances = np.abs(xyz @ coefficients[:3] + coefficients[3])
    return np.flatnonzero(distances <= threshold)


def fit_plane(
    xyz: np.ndarray,
    distance_threshold: float = 0.02,
    max_iterations: int = 1000,
    rng: np.random.Generator | None = None,
    optimize: bool = True,
) -> PlaneFit | None:
    """Fit the dominant plane of ``xyz`` (N, 3).

    Each iteration samples three distinct points, skips collinear samples and
    scores the candidate by its number of points within
    ``distance_threshold``. Only a strictly better score replaces the best
    candidate. With ``optimize`` the winner is refit by least squares on its
    inliers and the inliers are selected again against the refit plane.

    Returns None when fewer than 3 points are given or every sample was
    degenerate.
    """
    if distance_threshold <= 0:
        raise ValueError(f"distance_threshold must be positive, got {distance_threshold}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

    xyz = np.asarray(xyz, dtype=np.float64)
    n_points = len(xyz)
    if n_points < 3:
        return None
    if rng is None:
        rng = np.random.default_rng()

    best_coefficients: np.ndarray | None = None
    best_count = 0

    for _ in range(max_iterations):
        sample = rng.choice(n_points, size=3, replace=False)
        candidate = plane_from_points(*xyz[sample])
        if candidate is None:
            continue
        count = int(np.count_nonzero(np.abs(xyz @ candidate[:3] + candidate[3]) <= distance_threshold))
        if count > best_count:
            best_count = count
            best_coefficients = candidate

    if best_coefficients is None:
        logger.warning(f"RANSAC found no valid model after {max_iterations} iterations")
        return None

    inliers = _select_inliers(xyz, best_coefficients, distance_threshold)

    if optimize:
        refined = fit_plane_lstsq(xyz[inliers])
        if refined is not None:
            refined_inliers = _select_inliers(xyz, refined, distance_threshold)
            logger.debug(f"Refit plane: {len(inliers)} -> {len(refined_inliers)} inliers")
            best_coefficients, inliers = refined, refined_inliers

    best_coefficients = orient_plane(best_coefficients)
    return PlaneFit(model=PlaneModel.from_coefficients(best_coefficients), inliers=inliers)


def partition(cloud: PointBuffer, inliers: np.ndarray) -> tuple[PointBuffer, PointBuffer]:
    """Split ``cloud`` into (plane points, remaining points) in one pass."""
    mask = np.zeros(len(cloud), dtype=bool)
    mask[np.asarray(inliers, dtype=np.intp)] = True
    return cloud.select(mask), cloud.select(~mask)
