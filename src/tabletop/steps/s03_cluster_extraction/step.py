"""Step 03: Euclidean clustering of the points above the plane."""

from __future__ import annotations

import logging
from typing import ClassVar

from tabletop.core.step_base import BaseStep
from ._euclidean import extract_clusters
from .config import ClusterExtractionConfig
from .contracts import ClusterExtractionInput, ClusterExtractionOutput

logger = logging.getLogger(__name__)


class ClusterExtractionStep(BaseStep[ClusterExtractionInput, ClusterExtractionOutput, ClusterExtractionConfig]):
    name: ClassVar[str] = "cluster_extraction"
    input_type: ClassVar = ClusterExtractionInput
    output_type: ClassVar = ClusterExtractionOutput
    config_type: ClassVar = ClusterExtractionConfig

    def validate_inputs(self, inputs: ClusterExtractionInput) -> bool:
        if not inputs.cloud.is_dense:
            logger.error("Cluster extraction needs a dense cloud")
            return False
        return True

    def run(self, inputs: ClusterExtractionInput) -> ClusterExtractionOutput:
        cfg = self.config
        clusters, num_discarded = extract_clusters(
            inputs.cloud,
            tolerance=cfg.tolerance,
            min_size=cfg.min_cluster_size,
            max_size=cfg.max_cluster_size,
        )
        logger.info(f"Clusters found: {len(clusters)}")
        return ClusterExtractionOutput(clusters=clusters, num_discarded=num_discarded)
