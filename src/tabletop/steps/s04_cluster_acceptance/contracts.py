"""I/O contracts for Step 04: Cluster acceptance."""

from pydantic import BaseModel, Field

from tabletop.core.contracts import ClusterSummary, PlaneModel, PointBuffer


class ClusterAcceptanceInput(BaseModel):
    clusters: list[PointBuffer] = Field(default_factory=list)
    classification_plane: PlaneModel
    plane_cloud: PointBuffer = Field(..., description="Plane inliers, cropped for the result")


class ClusterAcceptanceOutput(BaseModel):
    clusters: list[PointBuffer] = Field(default_factory=list, description="Accepted clusters, input order")
    summaries: list[ClusterSummary] = Field(default_factory=list)
    plane_cloud: PointBuffer
    num_rejected: int = 0
