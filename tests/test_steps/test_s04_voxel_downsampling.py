"""Tests for S04: Voxel downsampling."""

import numpy as np

from surfdet.core.contracts import PointCloud
from surfdet.steps.s04_voxel_downsampling.config import VoxelDownsamplingConfig
from surfdet.steps.s04_voxel_downsampling.step import VoxelDownsamplingStep, voxel_downsample


class TestVoxelDownsample:
    def test_one_point_per_voxel(self):
        pts = np.array([[0.001, 0.001, 0.001], [0.009, 0.009, 0.009], [0.015, 0.0, 0.0]])
        out = voxel_downsample(pts, 0.01)
        assert len(out) == 2
        np.testing.assert_allclose(out[0], [0.005, 0.005, 0.005])
        np.testing.assert_allclose(out[1], [0.015, 0.0, 0.0])

    def test_never_grows(self, rng):
        pts = rng.uniform(-0.5, 0.5, (2000, 3))
        assert len(voxel_downsample(pts, 0.05)) <= len(pts)

    def test_idempotent(self, rng):
        pts = rng.uniform(-0.5, 0.5, (2000, 3))
        once = voxel_downsample(pts, 0.05)
        twice = voxel_downsample(once, 0.05)
        assert len(twice) == len(once)
        np.testing.assert_allclose(twice, once)

    def test_disabled_leaf(self, rng):
        pts = rng.uniform(size=(10, 3))
        np.testing.assert_array_equal(voxel_downsample(pts, 0.0), pts)

    def test_empty(self):
        assert voxel_downsample(np.zeros((0, 3)), 0.01).shape == (0, 3)


class TestVoxelDownsamplingStep:
    def test_step(self, make_grid):
        cloud = PointCloud(make_grid(40, 40, 0.0025))
        out = VoxelDownsamplingStep(VoxelDownsamplingConfig(leaf_size=0.01)).execute(cloud)
        assert 0 < len(out) < len(cloud)

    def test_empty_cloud_passes_through(self):
        out = VoxelDownsamplingStep(VoxelDownsamplingConfig()).execute(PointCloud())
        assert out.is_empty
