"""Step 04: Keep only clusters touching the support surface region."""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from tabletop.core.contracts import ClusterSummary
from tabletop.core.step_base import BaseStep
from ._acceptance import accept_cluster, cluster_plane_distances, crop_box
from .config import ClusterAcceptanceConfig
from .contracts import ClusterAcceptanceInput, ClusterAcceptanceOutput

logger = logging.getLogger(__name__)


class ClusterAcceptanceStep(BaseStep[ClusterAcceptanceInput, ClusterAcceptanceOutput, ClusterAcceptanceConfig]):
    """Minimum-distance acceptance against the classification plane.

    Also crops the plane points to the box spanned by the origin and the
    classification plane's (a, b, c); clusters are not cropped.
    """

    name: ClassVar[str] = "cluster_acceptance"
    input_type: ClassVar = ClusterAcceptanceInput
    output_type: ClassVar = ClusterAcceptanceOutput
    config_type: ClassVar = ClusterAcceptanceConfig

    def validate_inputs(self, inputs: ClusterAcceptanceInput) -> bool:
        if not np.any(inputs.classification_plane.normal):
            logger.error("Classification plane has a zero normal")
            return False
        return True

    def run(self, inputs: ClusterAcceptanceInput) -> ClusterAcceptanceOutput:
        plane = inputs.classification_plane

        plane_cloud = inputs.plane_cloud
        if self.config.crop_plane_cloud:
            plane_cloud = crop_box(plane_cloud, np.zeros(3), plane.normal)
            logger.info(f"Cropped plane cloud: {len(inputs.plane_cloud)} -> {len(plane_cloud)} points")

        accepted = []
        summaries = []
        for cluster in inputs.clusters:
            if not accept_cluster(cluster, plane, self.config.tolerance):
                continue
            min_d, max_d = cluster_plane_distances(cluster, plane)
            summaries.append(ClusterSummary(
                index=len(accepted),
                num_points=len(cluster),
                centroid=cluster.centroid().tolist(),
                mean_color=cluster.mean_color().tolist(),
                min_distance=min_d,
                max_distance=max_d,
            ))
            accepted.append(cluster)

        num_rejected = len(inputs.clusters) - len(accepted)
        logger.info(f"Clusters on plane: {len(accepted)} (rejected {num_rejected})")
        return ClusterAcceptanceOutput(
            clusters=accepted,
            summaries=summaries,
            plane_cloud=plane_cloud,
            num_rejected=num_rejected,
        )
