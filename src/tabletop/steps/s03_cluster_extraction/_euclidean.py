"""Euclidean cluster extraction over a KD-tree neighbour graph.

Two points are connected when their distance is at most ``tolerance``;
clusters are the connected components, grown from seeds in input order.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.spatial import cKDTree

from tabletop.core.contracts import PointBuffer

logger = logging.getLogger(__name__)


def euclidean_components(xyz: np.ndarray, tolerance: float) -> list[np.ndarray]:
    """Connected components of the ``tolerance`` neighbour graph.

    Returns index arrays in discovery order; each array is sorted.
    """
    n = len(xyz)
    if n == 0:
        return []

    tree = cKDTree(xyz)
    visited = np.zeros(n, dtype=bool)
    components: list[np.ndarray] = []

    for seed in range(n):
        if visited[seed]:
            continue
        visited[seed] = True
        queue = [seed]
        head = 0
        # BFS expansion
        while head < len(queue):
            j = queue[head]
            head += 1
            for k in tree.query_ball_point(xyz[j], tolerance):
                if not visited[k]:
                    visited[k] = True
                    queue.append(k)
        components.append(np.sort(np.asarray(queue, dtype=np.intp)))

    return components


def extract_clusters(
    cloud: PointBuffer,
    tolerance: float = 0.04,
    min_size: int = 50,
    max_size: int = 25000,
) -> tuple[list[PointBuffer], int]:
    """Group ``cloud`` into clusters and keep those with min_size <= size <= max_size.

    Returns:
        (clusters, num_discarded): independent cluster buffers in discovery
        order, and the number of points in rejected components.
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")

    components = euclidean_components(cloud.xyz, tolerance)
    clusters: list[PointBuffer] = []
    num_discarded = 0

    for indices in components:
        if min_size <= len(indices) <= max_size:
            clusters.append(cloud.select(indices))
        else:
            num_discarded += len(indices)

    logger.info(
        f"Found {len(components)} connected components in {len(cloud)} points, "
        f"kept {len(clusters)} clusters, discarded {num_discarded} points"
    )
    return clusters, num_discarded
