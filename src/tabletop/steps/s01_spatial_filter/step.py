"""Step 01: Range filter on the depth axis, then voxel grid downsampling."""

from __future__ import annotations

import logging
from typing import ClassVar

from tabletop.core.step_base import BaseStep
from ._passthrough import filter_range
from ._voxel_grid import voxel_downsample
from .config import SpatialFilterConfig
from .contracts import SpatialFilterInput, SpatialFilterOutput

logger = logging.getLogger(__name__)


class SpatialFilterStep(BaseStep[SpatialFilterInput, SpatialFilterOutput, SpatialFilterConfig]):
    """Bound the working set before plane fitting and clustering."""

    name: ClassVar[str] = "spatial_filter"
    input_type: ClassVar = SpatialFilterInput
    output_type: ClassVar = SpatialFilterOutput
    config_type: ClassVar = SpatialFilterConfig

    def validate_inputs(self, inputs: SpatialFilterInput) -> bool:
        # Non-dense input is fine here: the range filter drops NaN points
        return True

    def run(self, inputs: SpatialFilterInput) -> SpatialFilterOutput:
        cfg = self.config
        ranged = filter_range(inputs.cloud, cfg.axis, cfg.min_value, cfg.max_value)
        logger.info(
            f"Range filter {cfg.axis} in [{cfg.min_value}, {cfg.max_value}]: "
            f"{len(inputs.cloud)} -> {len(ranged)} points"
        )

        downsampled = voxel_downsample(ranged, cfg.leaf_size)
        logger.info(f"After voxel grid filter ({cfg.leaf_size} m): {len(downsampled)} points")

        return SpatialFilterOutput(
            cloud=downsampled,
            num_input=len(inputs.cloud),
            num_after_range=len(ranged),
            num_after_voxel=len(downsampled),
        )
