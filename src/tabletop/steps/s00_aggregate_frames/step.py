"""Step 00: Merge K consecutive sensor frames into one cloud."""

from __future__ import annotations

import logging
import threading
from typing import ClassVar

from tabletop.core.contracts import PointBuffer
from tabletop.core.frames import FrameSource
from tabletop.core.step_base import BaseStep
from .config import AggregateFramesConfig
from .contracts import AggregateFramesInput, AggregateFramesOutput

logger = logging.getLogger(__name__)


def aggregate_frames(
    source: FrameSource,
    k: int,
    cancel: threading.Event | None = None,
    poll_interval: float = 1.0 / 30.0,
) -> PointBuffer:
    """Take exactly ``k`` frames from ``source`` and concatenate them.

    Any frame left over from before the call is discarded first. There is no
    timeout: a silent source blocks until ``cancel`` is set, which raises
    FrameWaitCancelled.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")

    source.clear()
    frames: list[PointBuffer] = []
    while len(frames) < k:
        frames.append(source.take_latest_blocking(cancel=cancel, poll_interval=poll_interval))
        logger.debug(f"Aggregated frame {len(frames)}/{k} ({len(frames[-1])} points)")

    # frame id comes from the most recent frame
    return PointBuffer.concatenate(frames)


class AggregateFramesStep(BaseStep[AggregateFramesInput, AggregateFramesOutput, AggregateFramesConfig]):
    """Collect ``num_frames`` frames from the ingestion slot."""

    name: ClassVar[str] = "aggregate_frames"
    input_type: ClassVar = AggregateFramesInput
    output_type: ClassVar = AggregateFramesOutput
    config_type: ClassVar = AggregateFramesConfig

    def validate_inputs(self, inputs: AggregateFramesInput) -> bool:
        if not hasattr(inputs.source, "take_latest_blocking"):
            logger.error(f"Frame source {inputs.source!r} has no take_latest_blocking()")
            return False
        return True

    def run(self, inputs: AggregateFramesInput) -> AggregateFramesOutput:
        cloud = aggregate_frames(
            inputs.source,
            self.config.num_frames,
            cancel=inputs.cancel,
            poll_interval=1.0 / self.config.poll_hz,
        )
        logger.info(
            f"Aggregated {self.config.num_frames} frames: {len(cloud)} points "
            f"(frame '{cloud.frame_id}')"
        )
        return AggregateFramesOutput(cloud=cloud, num_frames=self.config.num_frames)
