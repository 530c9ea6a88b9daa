"""Tabletop perception: find objects resting on a planar surface in RGB-D point clouds."""

from tabletop.core.config import DetectorConfig, load_detector_config
from tabletop.core.contracts import DetectionResult, PlaneModel, PointBuffer
from tabletop.core.detector import DetectionState, ObjectDetector
from tabletop.core.frames import LatestFrameSlot

__version__ = "0.1.0"

__all__ = [
    "DetectorConfig",
    "load_detector_config",
    "DetectionResult",
    "PlaneModel",
    "PointBuffer",
    "DetectionState",
    "ObjectDetector",
    "LatestFrameSlot",
]
