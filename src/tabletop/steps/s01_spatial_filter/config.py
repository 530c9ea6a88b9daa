"""Configuration for Step 01: Range filter + voxel grid downsampling."""

from pydantic import BaseModel, Field, model_validator


class SpatialFilterConfig(BaseModel):
    axis: str = Field("z", pattern="^[xyzXYZ]$", description="Axis the range filter applies to (depth axis)")
    min_value: float = Field(0.0, description="Lower range bound on the axis (meters, inclusive)")
    max_value: float = Field(1.0, description="Upper range bound on the axis (meters, inclusive)")
    leaf_size: float = Field(0.005, gt=0, description="Voxel grid cube edge (meters)")

    @model_validator(mode="after")
    def _check_range(self) -> "SpatialFilterConfig":
        if self.min_value > self.max_value:
            raise ValueError(f"min_value ({self.min_value}) > max_value ({self.max_value})")
        return self
