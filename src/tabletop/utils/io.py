"""I/O utilities: colored point cloud PLY reader/writer."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from tabletop.core.contracts import PointBuffer

logger = logging.getLogger(__name__)

_COLOR_FIELDS = ("red", "green", "blue")
_FRAME_ID_PREFIX = "frame_id "


def _frame_id_comment(comments) -> str | None:
    for comment in comments:
        if comment.startswith(_FRAME_ID_PREFIX):
            return comment[len(_FRAME_ID_PREFIX):].strip() or None
    return None


def read_ply_cloud(path: Path, frame_id: str | None = None) -> PointBuffer:
    """Read a PLY point cloud into a PointBuffer.

    Colors are read from red/green/blue vertex properties when present,
    otherwise left black. Without an explicit ``frame_id`` the id comes from a
    ``frame_id <id>`` header comment, falling back to the file stem.
    """
    from plyfile import PlyData

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Point cloud file not found: {path}")

    ply = PlyData.read(str(path))
    vertex = ply["vertex"]
    prop_names = {p.name for p in vertex.properties}

    xyz = np.column_stack([
        np.asarray(vertex["x"], dtype=np.float64),
        np.asarray(vertex["y"], dtype=np.float64),
        np.asarray(vertex["z"], dtype=np.float64),
    ])
    rgb = None
    if set(_COLOR_FIELDS).issubset(prop_names):
        rgb = np.column_stack([np.asarray(vertex[c]) for c in _COLOR_FIELDS])
        if rgb.dtype.kind == "f" and rgb.size and rgb.max() <= 1.0:
            rgb = rgb * 255.0
        rgb = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)

    logger.info(f"Loaded {len(xyz)} points from {path.name}")
    if frame_id is None:
        frame_id = _frame_id_comment(ply.comments) or path.stem
    return PointBuffer(xyz=xyz, rgb=rgb, frame_id=frame_id)


def write_ply_cloud(path: Path, cloud: PointBuffer, binary: bool = True) -> Path:
    """Write a PointBuffer as a PLY with double positions and uchar colors."""
    from plyfile import PlyData, PlyElement

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    vertices = np.empty(
        len(cloud),
        dtype=[("x", "f8"), ("y", "f8"), ("z", "f8"),
               ("red", "u1"), ("green", "u1"), ("blue", "u1")],
    )
    vertices["x"], vertices["y"], vertices["z"] = cloud.xyz.T
    vertices["red"], vertices["green"], vertices["blue"] = cloud.rgb.T

    element = PlyElement.describe(vertices, "vertex")
    comments = [f"{_FRAME_ID_PREFIX}{cloud.frame_id}"] if cloud.frame_id else []
    PlyData([element], text=not binary, comments=comments).write(str(path))
    return path
