"""Tabletop core: contracts, base step, frame ingestion, config, logging."""

from .step_base import BaseStep
from .contracts import ClusterSummary, DetectionResult, PlaneModel, PointBuffer, StepMeta
from .frames import FrameWaitCancelled, LatestFrameSlot, PlyFrameFeeder
from .debug_sink import NullDebugSink, PlyDebugSink
from .logging import setup_logging

__all__ = [
    "BaseStep",
    "ClusterSummary",
    "DetectionResult",
    "PlaneModel",
    "PointBuffer",
    "StepMeta",
    "FrameWaitCancelled",
    "LatestFrameSlot",
    "PlyFrameFeeder",
    "NullDebugSink",
    "PlyDebugSink",
    "setup_logging",
]
