"""Axis-aligned range (pass-through) filter."""

from __future__ import annotations

import numpy as np

from tabletop.core.contracts import PointBuffer
from tabletop.utils.geometry import axis_index


def filter_range(cloud: PointBuffer, axis: str | int, min_value: float, max_value: float) -> PointBuffer:
    """Keep points whose ``axis`` coordinate lies in [min_value, max_value].

    Points with any non-finite coordinate are dropped as well, so the result
    is always dense. Point order is preserved.
    """
    col = axis_index(axis)
    if cloud.empty():
        return cloud.select(np.empty(0, dtype=np.intp), is_dense=True)

    finite = np.isfinite(cloud.xyz).all(axis=1)
    values = cloud.xyz[:, col]
    with np.errstate(invalid="ignore"):
        keep = finite & (values >= min_value) & (values <= max_value)
    return cloud.select(keep, is_dense=True)
