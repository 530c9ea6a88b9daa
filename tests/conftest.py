"""Shared pytest fixtures for tabletop detector tests."""

from __future__ import annotations

import numpy as np
import pytest

from tabletop.core.config import DetectorConfig
from tabletop.core.contracts import PointBuffer


def make_cloud(xyz, rgb=None, frame_id: str = "camera") -> PointBuffer:
    return PointBuffer(xyz=np.asarray(xyz, dtype=float), rgb=rgb, frame_id=frame_id)


def grid_plane(extent: float = 1.0, spacing: float = 0.01, z: float = 0.0) -> np.ndarray:
    """Flat square grid of points at height z, from (0, 0) to (extent, extent)."""
    n = int(round(extent / spacing)) + 1
    xs = np.linspace(0.0, extent, n)
    gx, gy = np.meshgrid(xs, xs, indexing="ij")
    return np.column_stack([gx.ravel(), gy.ravel(), np.full(gx.size, z)])


def solid_cube(center, size: float = 0.1, spacing: float = 0.01) -> np.ndarray:
    """Filled cube of points with the given edge length."""
    n = int(round(size / spacing)) + 1
    axes = [np.linspace(c - size / 2, c + size / 2, n) for c in center]
    gx, gy, gz = np.meshgrid(*axes, indexing="ij")
    return np.column_stack([gx.ravel(), gy.ravel(), gz.ravel()])


def table_scene(cube_center=(0.5, 0.5, 0.05)) -> PointBuffer:
    """1x1 m plane at z=0 (gray) plus a 0.1 m cube of points (red)."""
    plane = grid_plane()
    cube = solid_cube(cube_center)
    xyz = np.vstack([plane, cube])
    rgb = np.vstack([
        np.full((len(plane), 3), 128, dtype=np.uint8),
        np.tile(np.array([[200, 30, 30]], dtype=np.uint8), (len(cube), 1)),
    ])
    return make_cloud(xyz, rgb, frame_id="camera_depth_optical_frame")


def aligned_config(**overrides) -> DetectorConfig:
    """Defaults with zero classification offsets and a fixed seed.

    Synthetic scenes live in a frame where the table is the z=0 plane, so the
    mounting offsets of the real sensor do not apply.
    """
    cfg = DetectorConfig(**overrides)
    cfg.plane.seed = 7
    cfg.plane.classification_offsets.x_offset = 0.0
    cfg.plane.classification_offsets.y_offset = 0.0
    cfg.plane.classification_offsets.z_offset = 0.0
    return cfg


class RecordingSink:
    def __init__(self):
        self.published: list[tuple[str, PointBuffer]] = []

    def publish(self, channel: str, cloud: PointBuffer) -> None:
        self.published.append((channel, cloud))


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def scene_on_table() -> PointBuffer:
    return table_scene()


@pytest.fixture
def scene_floating_cube() -> PointBuffer:
    return table_scene(cube_center=(0.5, 0.5, 5.0))
