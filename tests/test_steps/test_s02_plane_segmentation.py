"""Tests for S02: RANSAC plane segmentation."""

import numpy as np
import pytest

from tabletop.core.contracts import PlaneModel, PointBuffer
from tabletop.steps.s02_plane_segmentation._ransac import fit_plane, partition
from tabletop.steps.s02_plane_segmentation.config import (
    ClassificationOffsets, PlaneSegmentationConfig,
)
from tabletop.steps.s02_plane_segmentation.contracts import PlaneSegmentationInput
from tabletop.steps.s02_plane_segmentation.step import (
    PlaneSegmentationStep, build_classification_plane,
)


def _plane_with_outliers(rng, n_plane=600, n_outliers=200):
    """Points on z = 0.2x - 0.1y + 0.5 plus uniform outliers above it."""
    xy = rng.uniform(-1.0, 1.0, (n_plane, 2))
    z = 0.2 * xy[:, 0] - 0.1 * xy[:, 1] + 0.5
    on_plane = np.column_stack([xy, z])
    outliers = rng.uniform([-1, -1, 1.0], [1, 1, 2.0], (n_outliers, 3))
    normal = np.array([-0.2, 0.1, 1.0])
    norm = np.linalg.norm(normal)
    expected = np.append(normal / norm, -0.5 / norm)
    return np.vstack([on_plane, outliers]), expected


class TestFitPlane:
    def test_recovers_known_plane(self, rng):
        xyz, expected = _plane_with_outliers(rng)
        fit = fit_plane(xyz, distance_threshold=0.02, max_iterations=200, rng=np.random.default_rng(0))
        assert fit is not None
        np.testing.assert_allclose(fit.model.coefficients, expected, atol=1e-6)
        assert len(fit.inliers) >= 600
        assert np.linalg.norm(fit.model.normal) == pytest.approx(1.0)

    def test_seeded_runs_are_identical(self, rng):
        xyz, _ = _plane_with_outliers(rng)
        a = fit_plane(xyz, max_iterations=50, rng=np.random.default_rng(3), optimize=False)
        b = fit_plane(xyz, max_iterations=50, rng=np.random.default_rng(3), optimize=False)
        assert a.model.coefficients == b.model.coefficients
        np.testing.assert_array_equal(a.inliers, b.inliers)

    def test_normal_orientation(self, rng):
        xyz, _ = _plane_with_outliers(rng)
        fit = fit_plane(xyz, rng=np.random.default_rng(1))
        normal = fit.model.normal
        assert normal[np.argmax(np.abs(normal))] > 0

    def test_without_refinement(self, rng):
        xyz, expected = _plane_with_outliers(rng)
        fit = fit_plane(xyz, rng=np.random.default_rng(0), optimize=False)
        np.testing.assert_allclose(fit.model.coefficients, expected, atol=1e-6)

    def test_too_few_points(self):
        assert fit_plane(np.zeros((2, 3))) is None

    def test_collinear_points(self):
        xyz = np.column_stack([np.linspace(0, 1, 20), np.zeros(20), np.zeros(20)])
        assert fit_plane(xyz, max_iterations=20, rng=np.random.default_rng(0)) is None

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            fit_plane(np.zeros((5, 3)), distance_threshold=0.0)
        with pytest.raises(ValueError):
            fit_plane(np.zeros((5, 3)), max_iterations=0)


    def test_uniform_outliers_in_plane_volume(self):
        gen = np.random.default_rng(11)
        xy = gen.uniform(-1.0, 1.0, (600, 2))
        on_plane = np.column_stack([xy, np.zeros(600)])
        outliers = gen.uniform([-1.0, -1.0, -0.5], [1.0, 1.0, 0.5], (300, 3))
        xyz = np.vstack([on_plane, outliers])

        fit = fit_plane(xyz, distance_threshold=0.02, max_iterations=300, rng=np.random.default_rng(5))
        assert fit is not None
        np.testing.assert_allclose(fit.model.coefficients, [0.0, 0.0, 1.0, 0.0], atol=0.01)
        assert np.isin(np.arange(600), fit.inliers).all()
        assert len(fit.inliers) < len(xyz)


class TestPartition:
    def test_split(self):
        xyz = np.arange(18, dtype=float).reshape(6, 3)
        cloud = PointBuffer(xyz=xyz, frame_id="cam")
        plane, rest = partition(cloud, np.array([4, 0, 2]))
        np.testing.assert_array_equal(plane.xyz, xyz[[0, 2, 4]])
        np.testing.assert_array_equal(rest.xyz, xyz[[1, 3, 5]])
        assert plane.frame_id == rest.frame_id == "cam"


class TestClassificationPlane:
    def test_offsets(self):
        fitted = PlaneModel(a=0.0, b=0.0, c=1.0, d=-0.3)
        cls = build_classification_plane(fitted, ClassificationOffsets())
        assert cls.coefficients == pytest.approx((0.1, 0.5, 1.1, -0.3))
        # fitted plane is a separate value
        assert fitted.coefficients == (0.0, 0.0, 1.0, -0.3)


class TestPlaneSegmentationStep:
    def test_config_defaults(self):
        cfg = PlaneSegmentationConfig()
        assert cfg.distance_threshold == 0.02
        assert cfg.max_iterations == 1000
        assert cfg.optimize_coefficients is True
        offsets = cfg.classification_offsets
        assert (offsets.x_offset, offsets.y_offset, offsets.z_offset) == (0.1, 0.5, 0.1)

    def test_step_partitions(self, rng):
        xyz, expected = _plane_with_outliers(rng)
        step = PlaneSegmentationStep(PlaneSegmentationConfig(seed=5))
        out = step.execute(PlaneSegmentationInput(cloud=PointBuffer(xyz=xyz)))
        assert out.is_plane_found
        assert out.num_inliers + len(out.rest_cloud) == len(xyz)
        np.testing.assert_allclose(out.plane.coefficients, expected, atol=1e-6)
        assert out.classification_plane.a == pytest.approx(out.plane.a + 0.1)
        assert out.classification_plane.b == pytest.approx(out.plane.b + 0.5)

    def test_no_plane_on_empty_cloud(self):
        step = PlaneSegmentationStep(PlaneSegmentationConfig())
        out = step.execute(PlaneSegmentationInput(cloud=PointBuffer(xyz=np.empty((0, 3)))))
        assert out.is_plane_found is False
        assert out.plane is None
        assert out.plane_cloud.empty()

    def test_rejects_non_dense(self):
        step = PlaneSegmentationStep(PlaneSegmentationConfig())
        cloud = PointBuffer(xyz=[[0, 0, np.nan], [1, 0, 0], [0, 1, 0]])
        with pytest.raises(ValueError):
            step.execute(PlaneSegmentationInput(cloud=cloud))
