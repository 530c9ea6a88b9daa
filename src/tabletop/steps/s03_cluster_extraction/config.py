"""Configuration for Step 03: Euclidean cluster extraction."""

from pydantic import BaseModel, Field, model_validator


class ClusterExtractionConfig(BaseModel):
    tolerance: float = Field(0.04, gt=0, description="Max neighbour distance within a cluster (meters)")
    min_cluster_size: int = Field(50, ge=1, description="Smaller clusters are treated as noise")
    max_cluster_size: int = Field(25000, ge=1, description="Larger clusters are treated as background")

    @model_validator(mode="after")
    def _check_sizes(self) -> "ClusterExtractionConfig":
        if self.min_cluster_size > self.max_cluster_size:
            raise ValueError(
                f"min_cluster_size ({self.min_cluster_size}) > max_cluster_size ({self.max_cluster_size})"
            )
        return self
