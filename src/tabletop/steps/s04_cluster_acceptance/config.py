"""Configuration for Step 04: Cluster acceptance."""

from pydantic import BaseModel, Field


class ClusterAcceptanceConfig(BaseModel):
    tolerance: float = Field(
        0.09, ge=0, description="A cluster whose closest point is farther than this from the plane is rejected (m)"
    )
    crop_plane_cloud: bool = Field(
        True, description="Crop the plane points to the box [origin, classification (a, b, c)]"
    )
