"""Tests for S05: Normal estimation and MLS smoothing."""

import numpy as np
import pytest

from surfdet.core.contracts import PointCloud
from surfdet.core.errors import InsufficientDataError
from surfdet.steps.s05_normal_estimation._mls import mls_project
from surfdet.steps.s05_normal_estimation.config import MlsSmoothingConfig, NormalEstimationConfig
from surfdet.steps.s05_normal_estimation.step import MlsSmoothingStep, NormalEstimationStep


class TestNormalEstimation:
    def test_plane_normals_face_viewpoint(self, make_grid):
        cloud = PointCloud(make_grid(20, 20, 0.01, origin=(-0.1, -0.1, 1.0)))
        sample = NormalEstimationStep(NormalEstimationConfig(k_search=10)).execute(cloud)
        assert len(sample) == len(cloud)
        np.testing.assert_allclose(sample.normals.normals[:, 2], -1.0, atol=1e-6)
        assert np.all(sample.normals.curvature < 1e-6)

    def test_unit_length(self, rng):
        cloud = PointCloud(rng.uniform(-1, 1, (200, 3)))
        sample = NormalEstimationStep(NormalEstimationConfig(k_search=15)).execute(cloud)
        np.testing.assert_allclose(np.linalg.norm(sample.normals.normals, axis=1), 1.0)
        assert np.all((sample.normals.curvature >= 0) & (sample.normals.curvature <= 1.0 / 3 + 1e-9))

    def test_needs_more_than_k_points(self):
        step = NormalEstimationStep(NormalEstimationConfig(k_search=50))
        with pytest.raises(InsufficientDataError):
            step.execute(PointCloud(np.zeros((50, 3))))


class TestMlsSmoothing:
    def test_projection_reduces_noise(self, make_grid, rng):
        pts = make_grid(25, 25, 0.004)
        pts[:, 2] += rng.normal(0.0, 0.0005, len(pts))
        smoothed = mls_project(pts, search_radius=0.015, polynomial_order=2)
        assert smoothed.shape == pts.shape
        assert smoothed[:, 2].std() < pts[:, 2].std()

    def test_upsampling_adds_points(self, make_grid):
        pts = make_grid(15, 15, 0.005)
        smoothed = mls_project(pts, search_radius=0.01, upsampling_radius=0.005, point_density=40)
        assert len(smoothed) > len(pts)
        np.testing.assert_allclose(smoothed[:, 2], 0.0, atol=1e-9)

    def test_sparse_neighborhood_stays_on_tangent_plane(self, make_grid):
        # Four neighbors within the radius: too few for a quadric
        pts = make_grid(10, 10, 0.009, origin=(0.0, 0.0, 0.2))
        smoothed = mls_project(pts, search_radius=0.01, upsampling_radius=0.01, point_density=40)
        np.testing.assert_allclose(smoothed[:, 2], 0.2, atol=1e-9)

    def test_step_output(self, make_grid):
        cloud = PointCloud(make_grid(20, 20, 0.005, origin=(0.0, 0.0, 0.5)))
        cfg = MlsSmoothingConfig(search_radius=0.012, upsampling_radius=0.0, k_search=10)
        sample = MlsSmoothingStep(cfg).execute(cloud)
        assert len(sample) == len(cloud)
        np.testing.assert_allclose(sample.normals.normals[:, 2], -1.0, atol=1e-6)

    def test_upsampled_normals_share_one_orientation(self, make_grid):
        cloud = PointCloud(make_grid(20, 20, 0.008, origin=(0.0, 0.0, 0.5)))
        sample = MlsSmoothingStep(MlsSmoothingConfig()).execute(cloud)
        assert len(sample) > len(cloud)
        assert len(sample.normals.normals) == len(sample)
        np.testing.assert_allclose(sample.normals.normals[:, 2], -1.0, atol=1e-6)
        assert np.all(sample.normals.curvature < 1e-6)

    def test_mls_needs_more_than_k_points(self):
        step = MlsSmoothingStep(MlsSmoothingConfig(k_search=20))
        with pytest.raises(InsufficientDataError):
            step.execute(PointCloud(np.zeros((5, 3))))
