"""Configuration for Step 02: RANSAC plane segmentation."""

from pydantic import BaseModel, Field


class ClassificationOffsets(BaseModel):
    """Offsets added to the fitted normal to build the classification plane.

    The defaults match the sensor mounting the detector was tuned for.
    """

    x_offset: float = Field(0.1, description="Added to coefficient a")
    y_offset: float = Field(0.5, description="Added to coefficient b")
    z_offset: float = Field(0.1, description="Added to coefficient c")


class PlaneSegmentationConfig(BaseModel):
    distance_threshold: float = Field(0.02, gt=0, description="RANSAC inlier distance (meters)")
    max_iterations: int = Field(1000, ge=1, description="RANSAC iterations")
    optimize_coefficients: bool = Field(True, description="Least-squares refit on the inliers")
    seed: int | None = Field(None, ge=0, description="Random seed (None = nondeterministic)")
    classification_offsets: ClassificationOffsets = Field(default_factory=ClassificationOffsets)
