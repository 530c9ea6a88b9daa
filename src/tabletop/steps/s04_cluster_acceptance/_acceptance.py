"""Per-cluster plane proximity test and box crop."""

from __future__ import annotations

import logging

import numpy as np

from tabletop.core.contracts import PlaneModel, PointBuffer

logger = logging.getLogger(__name__)


def cluster_plane_distances(cluster: PointBuffer, plane: PlaneModel) -> tuple[float, float]:
    """(min, max) unsigned point-to-plane distance over the cluster."""
    if cluster.empty():
        return float("inf"), float("-inf")
    distances = plane.distance(cluster.xyz)
    return float(distances.min()), float(distances.max())


def accept_cluster(cluster: PointBuffer, plane: PlaneModel, tolerance: float = 0.09) -> bool:
    """True if at least one point of the cluster lies within ``tolerance`` of ``plane``.

    Only the closest point matters; the farthest distance is logged but never
    used to reject a cluster.
    """
    min_distance, max_distance = cluster_plane_distances(cluster, plane)
    if min_distance > tolerance:
        return False
    logger.debug(f"Min distance to plane for cluster with {len(cluster)} points: {min_distance:.4f}")
    logger.debug(f"Max distance to plane for cluster with {len(cluster)} points: {max_distance:.4f}")
    return True


def crop_box(cloud: PointBuffer, min_corner: np.ndarray, max_corner: np.ndarray) -> PointBuffer:
    """Keep points with min_corner <= p <= max_corner on every axis."""
    lo = np.asarray(min_corner, dtype=np.float64)[:3]
    hi = np.asarray(max_corner, dtype=np.float64)[:3]
    if cloud.empty():
        return cloud
    keep = np.all((cloud.xyz >= lo) & (cloud.xyz <= hi), axis=1)
    return cloud.select(keep)
