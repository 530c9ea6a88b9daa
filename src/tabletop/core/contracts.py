"""Common Pydantic models shared across pipeline steps."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _frozen_array(values: Any, dtype: type, name: str) -> np.ndarray:
    arr = np.array(values, dtype=dtype, copy=True)
    if arr.size == 0:
        arr = arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {arr.shape}")
    arr.flags.writeable = False
    return arr


class StepMeta(BaseModel):
    """Metadata attached to every step output for reproducibility."""

    step_name: str
    elapsed_seconds: float = 0.0
    params: dict[str, Any] = Field(default_factory=dict)


class PointBuffer(BaseModel):
    """Ordered colored points plus frame metadata.

    Positions are float64 meters, colors uint8 RGB. Both arrays are copied on
    construction and made read-only, so a buffer can be handed between stages
    without aliasing.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    xyz: np.ndarray
    rgb: np.ndarray
    frame_id: str = ""
    is_dense: bool = True

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        xyz = np.asarray(data.get("xyz", np.empty((0, 3))), dtype=np.float64)
        if xyz.size == 0:
            xyz = xyz.reshape(0, 3)
        data["xyz"] = xyz
        if data.get("rgb") is None:
            data["rgb"] = np.zeros((len(xyz), 3), dtype=np.uint8)
        if data.get("is_dense") is None:
            data["is_dense"] = bool(np.isfinite(xyz).all())
        return data

    @field_validator("xyz", mode="before")
    @classmethod
    def _validate_xyz(cls, v: Any) -> np.ndarray:
        return _frozen_array(v, np.float64, "xyz")

    @field_validator("rgb", mode="before")
    @classmethod
    def _validate_rgb(cls, v: Any) -> np.ndarray:
        arr = np.asarray(v)
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError("rgb values must lie in [0, 255]")
        return _frozen_array(arr, np.uint8, "rgb")

    @model_validator(mode="after")
    def _check_lengths(self) -> PointBuffer:
        if len(self.xyz) != len(self.rgb):
            raise ValueError(
                f"xyz and rgb length mismatch: {len(self.xyz)} vs {len(self.rgb)}"
            )
        return self

    def __len__(self) -> int:
        return len(self.xyz)

    def empty(self) -> bool:
        return len(self.xyz) == 0

    def select(self, indices: np.ndarray | Sequence[int], *, is_dense: bool | None = None) -> PointBuffer:
        """Contiguous copy of the points at ``indices`` (or a boolean mask), order kept."""
        idx = np.asarray(indices)
        if idx.dtype != bool:
            idx = idx.astype(np.intp)
        return PointBuffer(
            xyz=self.xyz[idx],
            rgb=self.rgb[idx],
            frame_id=self.frame_id,
            is_dense=is_dense,
        )

    def with_frame_id(self, frame_id: str) -> PointBuffer:
        return self.model_copy(update={"frame_id": frame_id})

    def centroid(self) -> np.ndarray:
        if self.empty():
            return np.zeros(3)
        return self.xyz.mean(axis=0)

    def mean_color(self) -> np.ndarray:
        """Average RGB over the buffer (float, 0-255)."""
        if self.empty():
            return np.zeros(3)
        return self.rgb.astype(np.float64).mean(axis=0)

    @classmethod
    def concatenate(cls, buffers: Sequence[PointBuffer], frame_id: str | None = None) -> PointBuffer:
        """Append buffers in order. Frame id defaults to the last buffer's."""
        if not buffers:
            return cls(xyz=np.empty((0, 3)), frame_id=frame_id or "")
        return cls(
            xyz=np.concatenate([b.xyz for b in buffers], axis=0),
            rgb=np.concatenate([b.rgb for b in buffers], axis=0),
            frame_id=buffers[-1].frame_id if frame_id is None else frame_id,
            is_dense=all(b.is_dense for b in buffers),
        )


class PlaneModel(BaseModel):
    """Plane a*x + b*y + c*z + d = 0."""

    model_config = ConfigDict(frozen=True)

    a: float
    b: float
    c: float
    d: float

    @classmethod
    def from_coefficients(cls, coefficients: Sequence[float]) -> PlaneModel:
        a, b, c, d = (float(v) for v in coefficients)
        return cls(a=a, b=b, c=c, d=d)

    @property
    def coefficients(self) -> tuple[float, float, float, float]:
        return (self.a, self.b, self.c, self.d)

    @property
    def normal(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c])

    def signed_distance(self, xyz: np.ndarray) -> np.ndarray:
        """Signed distance of each point, normalised by |(a, b, c)|."""
        norm = np.linalg.norm(self.normal)
        if norm == 0.0:
            raise ValueError("Plane normal has zero length")
        return (np.asarray(xyz, dtype=np.float64) @ self.normal + self.d) / norm

    def distance(self, xyz: np.ndarray) -> np.ndarray:
        return np.abs(self.signed_distance(xyz))

    @property
    def equation_string(self) -> str:
        return f"{self.a:.4f}x + {self.b:.4f}y + {self.c:.4f}z + {self.d:.4f} = 0"


class ClusterSummary(BaseModel):
    """Per-cluster report attached to a detection result."""

    index: int
    num_points: int
    centroid: list[float] = Field(..., min_length=3, max_length=3)
    mean_color: list[float] = Field(..., min_length=3, max_length=3)
    min_distance: float = Field(..., description="Closest point to the classification plane (m)")
    max_distance: float = Field(..., description="Farthest point from the classification plane (m)")


class DetectionResult(BaseModel):
    """Outcome of one detection pass. Never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    is_plane_found: bool
    plane_coefficients: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    classification_coefficients: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    plane_cloud: PointBuffer = Field(default_factory=lambda: PointBuffer(xyz=np.empty((0, 3))))
    clusters: tuple[PointBuffer, ...] = ()
    summaries: tuple[ClusterSummary, ...] = ()
    frame_id: str = ""
    stages: tuple[StepMeta, ...] = ()

    @classmethod
    def not_found(cls, frame_id: str = "", stages: Sequence[StepMeta] = ()) -> DetectionResult:
        return cls(
            is_plane_found=False,
            plane_cloud=PointBuffer(xyz=np.empty((0, 3)), frame_id=frame_id),
            frame_id=frame_id,
            stages=tuple(stages),
        )

    def report(self) -> dict[str, Any]:
        """JSON-serialisable summary (clouds reduced to point counts)."""
        return {
            "is_plane_found": self.is_plane_found,
            "frame_id": self.frame_id,
            "plane_coefficients": list(self.plane_coefficients),
            "classification_coefficients": list(self.classification_coefficients),
            "plane_points": len(self.plane_cloud),
            "clusters": [s.model_dump() for s in self.summaries],
            "stages": [s.model_dump() for s in self.stages],
        }
