"""Tests for S07: Greedy projection triangulation."""

import math

import numpy as np
import pytest

from surfdet.core.errors import GeometricFailure
from surfdet.steps.s07_triangulation.config import TriangulationConfig
from surfdet.steps.s07_triangulation.step import TriangulationStep, triangulate_patch


class TestTriangulationConfig:
    def test_defaults(self):
        cfg = TriangulationConfig()
        assert cfg.search_radius == 0.01
        assert cfg.mu == 2.5
        assert cfg.max_angle == pytest.approx(2 * math.pi / 3)

    def test_angle_bounds_validated(self):
        with pytest.raises(ValueError):
            TriangulationConfig(min_angle=1.0, max_angle=0.5)


class TestTriangulatePatch:
    def test_flat_grid(self, make_grid):
        pts = make_grid(10, 10, 0.005)
        normals = np.tile([0.0, 0.0, 1.0], (len(pts), 1))
        tris = triangulate_patch(pts, normals, TriangulationConfig())
        assert len(tris) > 0
        assert tris.min() >= 0 and tris.max() < len(pts)

        corners = pts[tris]
        edges = np.linalg.norm(corners - np.roll(corners, 1, axis=1), axis=2)
        assert edges.max() <= 0.01 + 1e-12

        face_z = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])[:, 2]
        assert np.all(face_z > 0) or np.all(face_z < 0)

    def test_interior_angles_within_bounds(self, make_grid, rng):
        pts = make_grid(12, 12, 0.004)
        pts[:, :2] += rng.uniform(-0.001, 0.001, (len(pts), 2))
        normals = np.tile([0.0, 0.0, 1.0], (len(pts), 1))
        cfg = TriangulationConfig()
        tris = triangulate_patch(pts, normals, cfg)

        corners = pts[tris]
        for c in range(3):
            e1 = corners[:, (c + 1) % 3] - corners[:, c]
            e2 = corners[:, (c + 2) % 3] - corners[:, c]
            cos = np.einsum("ij,ij->i", e1, e2) / (
                np.linalg.norm(e1, axis=1) * np.linalg.norm(e2, axis=1)
            )
            angles = np.arccos(np.clip(cos, -1, 1))
            assert np.all(angles >= cfg.min_angle - 1e-9)
            assert np.all(angles <= cfg.max_angle + 1e-9)

    def test_too_few_points(self):
        with pytest.raises(GeometricFailure):
            triangulate_patch(np.zeros((2, 3)), np.tile([0.0, 0.0, 1.0], (2, 1)), TriangulationConfig())

    def test_collinear_points(self):
        pts = np.column_stack([np.linspace(0, 0.01, 10), np.zeros(10), np.zeros(10)])
        with pytest.raises(GeometricFailure):
            triangulate_patch(pts, np.tile([0.0, 0.0, 1.0], (10, 1)), TriangulationConfig())

    def test_sparse_patch_has_no_triangles(self, make_grid):
        pts = make_grid(6, 6, 0.1)
        with pytest.raises(GeometricFailure):
            triangulate_patch(pts, np.tile([0.0, 0.0, 1.0], (36, 1)), TriangulationConfig())

    def test_surface_angle_rejects_creases(self, make_grid):
        pts = make_grid(8, 8, 0.005)
        normals = np.tile([0.0, 0.0, 1.0], (len(pts), 1))
        normals[1::2] = [1.0, 0.0, 0.0]
        with pytest.raises(GeometricFailure):
            triangulate_patch(pts, normals, TriangulationConfig())


def _cylinder_patch(radius: float = 0.1, step: float = 0.008, n: int = 20):
    """Grid on a cylinder about the y axis: ``step`` apart along both the arc and the axis."""
    theta = (np.arange(n) - (n - 1) / 2) * (step / radius)
    t, y = np.meshgrid(theta, np.arange(n) * step, indexing="ij")
    t, y = t.ravel(), y.ravel()
    points = np.column_stack([radius * np.sin(t), y, radius * np.cos(t)])
    normals = np.column_stack([np.sin(t), np.zeros_like(t), np.cos(t)])
    return points, normals


class TestCurvedPatch:
    def test_curved_patch_meshes_with_defaults(self):
        points, normals = _cylinder_patch()
        cfg = TriangulationConfig()
        tris = triangulate_patch(points, normals, cfg)
        assert len(tris) > len(points)

        corners = points[tris]
        edges = np.linalg.norm(corners - np.roll(corners, 1, axis=1), axis=2)
        # Every triangle is fanned from a vertex whose two edges lie within the radius
        assert np.all(np.sum(edges <= cfg.search_radius + 1e-12, axis=1) >= 2)

    def test_every_vertex_is_used(self):
        points, normals = _cylinder_patch()
        tris = triangulate_patch(points, normals, TriangulationConfig())
        assert set(np.unique(tris)) == set(range(len(points)))

    def test_normal_consistency_propagates_from_seed(self, rng):
        points, normals = _cylinder_patch()
        signs = rng.choice([-1.0, 1.0], size=len(points))
        cfg = TriangulationConfig(normal_consistency=True)
        tris = triangulate_patch(points, normals * signs[:, None], cfg)

        corners = points[tris]
        face = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
        radial = corners.mean(axis=1) * [1.0, 0.0, 1.0]
        side = np.einsum("ij,ij->i", face, radial)
        assert np.all(side > 0) or np.all(side < 0)

    def test_mu_limits_reach_on_dense_patch(self, make_grid):
        pts = make_grid(10, 10, 0.002)
        normals = np.tile([0.0, 0.0, 1.0], (len(pts), 1))
        tris = triangulate_patch(pts, normals, TriangulationConfig(mu=1.2))
        corners = pts[tris]
        edges = np.linalg.norm(corners - np.roll(corners, 1, axis=1), axis=2)
        assert np.all(np.sum(edges <= 1.2 * 0.002 + 1e-12, axis=1) >= 2)


class TestTriangulationStep:
    def test_step_returns_mesh(self, make_grid, make_flat_sample):
        sample = make_flat_sample(make_grid(10, 10, 0.005))
        mesh = TriangulationStep(TriangulationConfig()).execute(sample)
        assert mesh.num_triangles > 0
        assert len(mesh.vertices) == len(sample)

    def test_step_raises_geometric_failure(self, make_grid, make_flat_sample):
        sample = make_flat_sample(make_grid(1, 2, 0.005))
        with pytest.raises(GeometricFailure):
            TriangulationStep(TriangulationConfig()).execute(sample)
