"""Shared pytest fixtures for surface-detection tests."""

import math

import numpy as np
import pytest

from surfdet.core.contracts import NormalField, PointCloud, SurfaceSample


def grid_plane(
    nx: int, ny: int, spacing: float, origin=(0.0, 0.0, 0.0), axes: str = "xy"
) -> np.ndarray:
    """Regular grid of points in the plane spanned by ``axes``."""
    u, v = np.meshgrid(np.arange(nx) * spacing, np.arange(ny) * spacing, indexing="ij")
    pts = np.zeros((nx * ny, 3))
    a, b = ("xyz".index(axes[0]), "xyz".index(axes[1]))
    pts[:, a] = u.ravel()
    pts[:, b] = v.ravel()
    return pts + np.asarray(origin, dtype=np.float64)


def hemisphere(radius: float, n: int, center=(0.0, 0.0, 0.0)) -> np.ndarray:
    """Evenly spread points on the upper half sphere (Fibonacci spiral), z in (0, R]."""
    golden_angle = math.pi * (3.0 - math.sqrt(5.0))
    i = np.arange(n)
    z = radius * (i + 0.5) / n
    r = np.sqrt(radius * radius - z * z)
    theta = i * golden_angle
    pts = np.column_stack([r * np.cos(theta), r * np.sin(theta), z])
    return pts + np.asarray(center, dtype=np.float64)


def flat_sample(points: np.ndarray, normal=(0.0, 0.0, 1.0)) -> SurfaceSample:
    """Patch with one fixed normal and zero curvature everywhere."""
    normals = np.tile(np.asarray(normal, dtype=np.float64), (len(points), 1))
    return SurfaceSample(PointCloud(points), NormalField(normals, np.zeros(len(points))))


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def make_grid():
    return grid_plane


@pytest.fixture
def make_flat_sample():
    return flat_sample


@pytest.fixture
def table_plane() -> np.ndarray:
    """0.6 m x 0.6 m tabletop at z = 0, about 5000 points."""
    return grid_plane(71, 71, 0.6 / 70, origin=(-0.3, -0.3, 0.0))


@pytest.fixture
def bump() -> np.ndarray:
    """Hemispherical object of radius 0.2 m sitting on the tabletop."""
    return hemisphere(0.2, 3000)


@pytest.fixture
def tabletop_scene(table_plane: np.ndarray, bump: np.ndarray) -> PointCloud:
    return PointCloud(np.vstack([table_plane, bump]))


@pytest.fixture
def two_patches() -> SurfaceSample:
    """A 150-point horizontal patch and a 50-point vertical patch far apart."""
    big = flat_sample(grid_plane(15, 10, 0.01), normal=(0.0, 0.0, 1.0))
    small = flat_sample(grid_plane(10, 5, 0.01, origin=(10.0, 0.0, 0.0), axes="yz"), normal=(1.0, 0.0, 0.0))
    points = np.vstack([big.cloud.points, small.cloud.points])
    normals = np.vstack([big.normals.normals, small.normals.normals])
    return SurfaceSample(PointCloud(points), NormalField(normals, np.zeros(len(points))))



def dome(num_points: int, spacing: float, sphere_radius: float, base_height: float) -> np.ndarray:
    """Spherical cap sampled on a square xy lattice around (0.005, 0.005).

    The ``num_points`` lattice nodes closest to the center are kept. Node
    columns sit mid-voxel for a 0.01 m grid, so each point keeps its own
    voxel. The cap rim is at ``base_height``.
    """
    steps = np.arange(-20, 21) * spacing
    gx, gy = np.meshgrid(steps, steps, indexing="ij")
    xy = np.column_stack([gx.ravel(), gy.ravel()])
    r = np.linalg.norm(xy, axis=1)
    keep = np.argsort(r, kind="stable")[:num_points]
    xy, r = xy[keep], r[keep]
    rim = math.sqrt(sphere_radius ** 2 - r.max() ** 2)
    z = base_height + np.sqrt(sphere_radius ** 2 - r ** 2) - rim
    return np.column_stack([xy + 0.005, z])


@pytest.fixture
def small_dome_scene() -> PointCloud:
    """5000-point table at z = 0 plus a 200-point dome, 1 cm above it at the rim."""
    table = grid_plane(100, 50, 0.01, origin=(-0.5, -0.25, 0.0))
    return PointCloud(np.vstack([table, dome(200, 0.0099, 0.25, 0.01)]))
