"""Step 02: Fit the support plane and split the cloud into plane / rest."""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from tabletop.core.contracts import PlaneModel
from tabletop.core.step_base import BaseStep
from ._ransac import fit_plane, partition
from .config import ClassificationOffsets, PlaneSegmentationConfig
from .contracts import PlaneSegmentationInput, PlaneSegmentationOutput

logger = logging.getLogger(__name__)


def build_classification_plane(plane: PlaneModel, offsets: ClassificationOffsets) -> PlaneModel:
    """Perturb the fitted normal by fixed offsets; d is kept as is."""
    return PlaneModel(
        a=plane.a + offsets.x_offset,
        b=plane.b + offsets.y_offset,
        c=plane.c + offsets.z_offset,
        d=plane.d,
    )


class PlaneSegmentationStep(BaseStep[PlaneSegmentationInput, PlaneSegmentationOutput, PlaneSegmentationConfig]):
    """RANSAC plane fit, inlier/outlier partition, classification plane."""

    name: ClassVar[str] = "plane_segmentation"
    input_type: ClassVar = PlaneSegmentationInput
    output_type: ClassVar = PlaneSegmentationOutput
    config_type: ClassVar = PlaneSegmentationConfig

    def validate_inputs(self, inputs: PlaneSegmentationInput) -> bool:
        if not inputs.cloud.is_dense:
            logger.error("Plane segmentation needs a dense cloud (run the spatial filter first)")
            return False
        return True

    def run(self, inputs: PlaneSegmentationInput) -> PlaneSegmentationOutput:
        cfg = self.config
        cloud = inputs.cloud
        rng = inputs.rng if inputs.rng is not None else np.random.default_rng(cfg.seed)

        fit = fit_plane(
            cloud.xyz,
            distance_threshold=cfg.distance_threshold,
            max_iterations=cfg.max_iterations,
            rng=rng,
            optimize=cfg.optimize_coefficients,
        )

        if fit is None or len(fit.inliers) == 0:
            logger.warning(f"No plane found in {len(cloud)} points")
            empty = cloud.select(np.empty(0, dtype=np.intp))
            return PlaneSegmentationOutput(
                is_plane_found=False,
                plane_cloud=empty,
                rest_cloud=cloud,
            )

        plane_cloud, rest_cloud = partition(cloud, fit.inliers)
        classification = build_classification_plane(fit.model, cfg.classification_offsets)
        logger.info(
            f"Plane {fit.model.equation_string}: {len(plane_cloud)} inliers, "
            f"{len(rest_cloud)} remaining"
        )

        return PlaneSegmentationOutput(
            is_plane_found=True,
            plane=fit.model,
            classification_plane=classification,
            plane_cloud=plane_cloud,
            rest_cloud=rest_cloud,
            num_inliers=len(plane_cloud),
        )
