"""I/O contracts for Step 01: Spatial filtering."""

from pydantic import BaseModel, Field

from tabletop.core.contracts import PointBuffer


class SpatialFilterInput(BaseModel):
    cloud: PointBuffer


class SpatialFilterOutput(BaseModel):
    cloud: PointBuffer = Field(..., description="Range-filtered, downsampled, dense cloud")
    num_input: int
    num_after_range: int
    num_after_voxel: int
