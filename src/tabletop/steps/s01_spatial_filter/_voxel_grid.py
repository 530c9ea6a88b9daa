"""Voxel grid downsampling: one centroid per occupied cube."""

from __future__ import annotations

import numpy as np

from tabletop.core.contracts import PointBuffer


def voxel_downsample(cloud: PointBuffer, leaf_size: float) -> PointBuffer:
    """Replace all points sharing a cube of edge ``leaf_size`` by their centroid.

    Colors are averaged per cube and rounded. Cubes are anchored at
    floor(p / leaf_size); output is ordered by cube index (x, then y, then z),
    so the same input always yields the same output.
    """
    if leaf_size <= 0:
        raise ValueError(f"leaf_size must be positive, got {leaf_size}")
    if cloud.empty():
        return cloud

    xyz = cloud.xyz
    voxel_indices = np.floor(xyz / leaf_size).astype(np.int64)

    # Unique rows come back lexicographically sorted
    _, inverse, counts = np.unique(voxel_indices, axis=0, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)
    num_voxels = len(counts)

    centroids = np.zeros((num_voxels, 3))
    colors = np.zeros((num_voxels, 3))
    rgb = cloud.rgb.astype(np.float64)
    for dim in range(3):
        centroids[:, dim] = np.bincount(inverse, weights=xyz[:, dim], minlength=num_voxels) / counts
        colors[:, dim] = np.bincount(inverse, weights=rgb[:, dim], minlength=num_voxels) / counts

    return PointBuffer(
        xyz=centroids,
        rgb=np.clip(np.rint(colors), 0, 255).astype(np.uint8),
        frame_id=cloud.frame_id,
        is_dense=True,
    )
