"""I/O contracts for Step 03: Cluster extraction."""

from pydantic import BaseModel, Field

from tabletop.core.contracts import PointBuffer


class ClusterExtractionInput(BaseModel):
    cloud: PointBuffer = Field(..., description="Non-plane points")


class ClusterExtractionOutput(BaseModel):
    clusters: list[PointBuffer] = Field(default_factory=list, description="Clusters in discovery order")
    num_discarded: int = Field(0, description="Points in clusters outside the size bounds")
