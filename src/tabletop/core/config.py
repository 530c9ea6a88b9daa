"""Detector configuration: per-step models composed and loaded from YAML."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from tabletop.steps.s00_aggregate_frames.config import AggregateFramesConfig
from tabletop.steps.s01_spatial_filter.config import SpatialFilterConfig
from tabletop.steps.s02_plane_segmentation.config import PlaneSegmentationConfig
from tabletop.steps.s03_cluster_extraction.config import ClusterExtractionConfig
from tabletop.steps.s04_cluster_acceptance.config import ClusterAcceptanceConfig


class DetectorConfig(BaseModel):
    """Top-level detector configuration loaded from detector.yaml."""

    aggregation: AggregateFramesConfig = Field(default_factory=AggregateFramesConfig)
    spatial_filter: SpatialFilterConfig = Field(default_factory=SpatialFilterConfig)
    plane: PlaneSegmentationConfig = Field(default_factory=PlaneSegmentationConfig)
    clustering: ClusterExtractionConfig = Field(default_factory=ClusterExtractionConfig)
    acceptance: ClusterAcceptanceConfig = Field(default_factory=ClusterAcceptanceConfig)


def load_detector_config(config_path: Path) -> DetectorConfig:
    """Load and validate detector.yaml. An empty file gives the defaults."""
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return DetectorConfig(**raw)


def flatten_config(config: BaseModel, prefix: str = "") -> list[tuple[str, object]]:
    """(dotted.key, value) pairs for display."""
    rows: list[tuple[str, object]] = []
    for key, value in config:
        name = f"{prefix}{key}"
        if isinstance(value, BaseModel):
            rows.extend(flatten_config(value, prefix=f"{name}."))
        else:
            rows.append((name, value))
    return rows
