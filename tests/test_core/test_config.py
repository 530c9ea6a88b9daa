"""Tests for detector configuration loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from tabletop.core.config import DetectorConfig, flatten_config, load_detector_config

REPO_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "detector.yaml"


class TestDetectorConfig:
    def test_defaults(self):
        cfg = DetectorConfig()
        assert cfg.aggregation.num_frames == 15
        assert cfg.spatial_filter.leaf_size == 0.005
        assert cfg.plane.max_iterations == 1000
        assert cfg.clustering.tolerance == 0.04
        assert cfg.acceptance.tolerance == 0.09

    def test_load_yaml(self, tmp_path: Path):
        config_file = tmp_path / "detector.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"plane": {"seed": 3, "classification_offsets": {"y_offset": 0.0}},
                       "clustering": {"min_cluster_size": 10}}, f)
        cfg = load_detector_config(config_file)
        assert cfg.plane.seed == 3
        assert cfg.plane.classification_offsets.y_offset == 0.0
        assert cfg.plane.classification_offsets.x_offset == 0.1
        assert cfg.clustering.min_cluster_size == 10
        assert cfg.spatial_filter.max_value == 1.0

    def test_empty_yaml_gives_defaults(self, tmp_path: Path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_detector_config(config_file) == DetectorConfig()

    def test_invalid_values(self, tmp_path: Path):
        config_file = tmp_path / "bad.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"spatial_filter": {"min_value": 2.0, "max_value": 1.0}}, f)
        with pytest.raises(ValidationError):
            load_detector_config(config_file)

    def test_shipped_config_matches_defaults(self):
        assert load_detector_config(REPO_CONFIG) == DetectorConfig()

    def test_flatten(self):
        rows = dict(flatten_config(DetectorConfig()))
        assert rows["plane.classification_offsets.y_offset"] == 0.5
        assert rows["aggregation.poll_hz"] == 30.0
