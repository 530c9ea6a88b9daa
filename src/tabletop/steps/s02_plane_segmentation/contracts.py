"""I/O contracts for Step 02: Plane segmentation."""

from __future__ import annotations

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from tabletop.core.contracts import PlaneModel, PointBuffer


class PlaneSegmentationInput(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    cloud: PointBuffer
    rng: np.random.Generator | None = Field(None, description="Random source; seeded from config if None")


class PlaneSegmentationOutput(BaseModel):
    is_plane_found: bool
    plane: PlaneModel | None = Field(None, description="Fitted plane, unit normal")
    classification_plane: PlaneModel | None = Field(None, description="Fitted plane with offsets applied")
    plane_cloud: PointBuffer = Field(..., description="Inlier points")
    rest_cloud: PointBuffer = Field(..., description="All remaining points")
    num_inliers: int = 0
