"""Detection orchestrator: runs the steps in order for one detection request.

    IDLE -> AGGREGATING -> FILTERING -> PLANE_FITTING -> NO_PLANE
                                                      -> CLUSTERING -> ACCEPTING -> DONE

Stages run strictly one after another on the calling thread. Any failure is
reported as a "plane not found" result; nothing is raised to the caller.
"""

from __future__ import annotations

import enum
import logging
import threading

import numpy as np

from tabletop.steps.s00_aggregate_frames.contracts import AggregateFramesInput
from tabletop.steps.s00_aggregate_frames.step import AggregateFramesStep
from tabletop.steps.s01_spatial_filter.contracts import SpatialFilterInput
from tabletop.steps.s01_spatial_filter.step import SpatialFilterStep
from tabletop.steps.s02_plane_segmentation.contracts import PlaneSegmentationInput
from tabletop.steps.s02_plane_segmentation.step import PlaneSegmentationStep
from tabletop.steps.s03_cluster_extraction.contracts import ClusterExtractionInput
from tabletop.steps.s03_cluster_extraction.step import ClusterExtractionStep
from tabletop.steps.s04_cluster_acceptance.contracts import ClusterAcceptanceInput
from tabletop.steps.s04_cluster_acceptance.step import ClusterAcceptanceStep
from .config import DetectorConfig
from .contracts import DetectionResult, PointBuffer, StepMeta
from .debug_sink import DebugSink, NullDebugSink
from .frames import FrameSource, FrameWaitCancelled
from .step_base import BaseStep

logger = logging.getLogger(__name__)

STEP_CLASSES: tuple[type[BaseStep], ...] = (
    AggregateFramesStep,
    SpatialFilterStep,
    PlaneSegmentationStep,
    ClusterExtractionStep,
    ClusterAcceptanceStep,
)


class DetectionState(str, enum.Enum):
    IDLE = "idle"
    AGGREGATING = "aggregating"
    FILTERING = "filtering"
    PLANE_FITTING = "plane_fitting"
    NO_PLANE = "no_plane"
    CLUSTERING = "clustering"
    ACCEPTING = "accepting"
    DONE = "done"


class ObjectDetector:
    """Finds objects resting on the dominant plane of a point cloud.

    Args:
        config: Detector configuration (defaults if None).
        frame_source: Where ``detect()`` takes frames from, typically a
            LatestFrameSlot fed by the sensor thread.
        debug_sink: Receives the non-plane cloud ("blobs") and the merged
            accepted clusters ("clusters_on_plane").
        rng: Random source for plane fitting. Built from ``config.plane.seed``
            when omitted, once per detector, so a detector with a fixed seed
            replays the same sequence of passes.
    """

    def __init__(
        self,
        config: DetectorConfig | None = None,
        frame_source: FrameSource | None = None,
        debug_sink: DebugSink | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config or DetectorConfig()
        self.frame_source = frame_source
        self.debug_sink = debug_sink or NullDebugSink()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.plane.seed)

        self.aggregate_step = AggregateFramesStep(self.config.aggregation)
        self.filter_step = SpatialFilterStep(self.config.spatial_filter)
        self.plane_step = PlaneSegmentationStep(self.config.plane)
        self.cluster_step = ClusterExtractionStep(self.config.clustering)
        self.accept_step = ClusterAcceptanceStep(self.config.acceptance)

        self._lock = threading.Lock()
        self._state = DetectionState.IDLE
        self.state_history: list[DetectionState] = []
        self._stages: list[StepMeta] = []

    @property
    def state(self) -> DetectionState:
        return self._state

    def _enter(self, state: DetectionState) -> None:
        logger.debug(f"Detector state: {self._state.value} -> {state.value}")
        self._state = state
        self.state_history.append(state)

    def _run(self, step: BaseStep, inputs):
        output = step.execute(inputs)
        if step.last_meta is not None:
            self._stages.append(step.last_meta)
        return output

    def _publish(self, channel: str, cloud: PointBuffer) -> None:
        try:
            self.debug_sink.publish(channel, cloud)
        except Exception:
            logger.exception(f"Debug sink failed on channel '{channel}'")

    def _reset(self) -> None:
        self._state = DetectionState.IDLE
        self.state_history = [DetectionState.IDLE]
        self._stages = []

    def detect(self, cancel: threading.Event | None = None) -> DetectionResult:
        """Aggregate frames from the frame source and run one detection pass.

        Blocks until enough frames arrived; only a set ``cancel`` event ends
        the wait early (reported as plane not found).
        """
        with self._lock:
            self._reset()
            if self.frame_source is None:
                logger.error("detect() called without a frame source")
                return self._fail("")

            self._enter(DetectionState.AGGREGATING)
            try:
                aggregated = self._run(
                    self.aggregate_step,
                    AggregateFramesInput(source=self.frame_source, cancel=cancel),
                )
            except FrameWaitCancelled:
                logger.warning("Frame aggregation cancelled")
                return self._fail("")
            except Exception:
                logger.exception("Frame aggregation failed")
                return self._fail("")

            return self._detect_guarded(aggregated.cloud)

    def detect_cloud(self, cloud: PointBuffer) -> DetectionResult:
        """Run one detection pass on an already aggregated cloud."""
        with self._lock:
            self._reset()
            return self._detect_guarded(cloud)

    def _fail(self, frame_id: str) -> DetectionResult:
        self._enter(DetectionState.NO_PLANE)
        return DetectionResult.not_found(frame_id=frame_id, stages=self._stages)

    def _detect_guarded(self, cloud: PointBuffer) -> DetectionResult:
        try:
            return self._detect(cloud)
        except Exception:
            logger.exception("Detection pass failed")
            return self._fail(cloud.frame_id)

    def _detect(self, cloud: PointBuffer) -> DetectionResult:
        frame_id = cloud.frame_id

        self._enter(DetectionState.FILTERING)
        filtered = self._run(self.filter_step, SpatialFilterInput(cloud=cloud)).cloud

        self._enter(DetectionState.PLANE_FITTING)
        segmented = self._run(self.plane_step, PlaneSegmentationInput(cloud=filtered, rng=self.rng))
        if not segmented.is_plane_found or segmented.plane_cloud.empty():
            logger.info("Plane not found")
            return self._fail(frame_id)

        self._publish("blobs", segmented.rest_cloud)

        self._enter(DetectionState.CLUSTERING)
        extracted = self._run(self.cluster_step, ClusterExtractionInput(cloud=segmented.rest_cloud))

        self._enter(DetectionState.ACCEPTING)
        accepted = self._run(
            self.accept_step,
            ClusterAcceptanceInput(
                clusters=extracted.clusters,
                classification_plane=segmented.classification_plane,
                plane_cloud=segmented.plane_cloud,
            ),
        )

        self._publish(
            "clusters_on_plane",
            PointBuffer.concatenate(accepted.clusters, frame_id=frame_id),
        )

        self._enter(DetectionState.DONE)
        return DetectionResult(
            is_plane_found=True,
            plane_coefficients=segmented.plane.coefficients,
            classification_coefficients=segmented.classification_plane.coefficients,
            plane_cloud=accepted.plane_cloud,
            clusters=tuple(accepted.clusters),
            summaries=tuple(accepted.summaries),
            frame_id=frame_id,
            stages=tuple(self._stages),
        )
