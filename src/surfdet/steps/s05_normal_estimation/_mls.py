"""Moving-least-squares surface projection.

For each point: a tangent frame from the plane fit over its k nearest
neighbors, then a Gaussian-weighted height field over that frame fitted to the
neighbors within the search radius. The height field is a quadric when the
neighborhood holds enough points to constrain it, otherwise the weighted mean
plane. The point is projected onto the height field. With upsampling,
neighborhoods holding fewer than ``point_density`` points get extra samples on
their fitted surface.
"""

from __future__ import annotations

import logging

import numpy as np

from surfdet.utils.geometry import knn_pca

logger = logging.getLogger(__name__)

# Twice the quadric's six coefficients
_MIN_QUADRIC_NEIGHBORS = 12


def _quadric_basis(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    return np.column_stack([np.ones_like(x), x, y, x * x, x * y, y * y])


def _height(coeffs: np.ndarray, x, y) -> np.ndarray:
    x = np.atleast_1d(np.asarray(x, dtype=np.float64))
    y = np.atleast_1d(np.asarray(y, dtype=np.float64))
    if len(coeffs) == 1:
        return np.full(x.shape, coeffs[0])
    return _quadric_basis(x, y) @ coeffs


def _frame(normal: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    helper = np.array([1.0, 0.0, 0.0]) if abs(normal[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    u = np.cross(normal, helper)
    u /= np.linalg.norm(u)
    return u, np.cross(normal, u)


def _fit_height_field(neigh: np.ndarray, center: np.ndarray, normal: np.ndarray,
                      radius: float, order: int):
    """Weighted height field over the tangent frame at ``center``.

    Returns:
        (origin, u, v, coeffs): coeffs holds one value (plane offset) or the
        six quadric coefficients.
    """
    w = np.exp(-np.sum((neigh - center) ** 2, axis=1) / (radius * radius))
    origin = center - ((center - (w[:, None] * neigh).sum(axis=0) / w.sum()) @ normal) * normal
    u, v = _frame(normal)
    d = neigh - origin
    z = d @ normal
    if order == 2 and len(neigh) >= _MIN_QUADRIC_NEIGHBORS:
        sw = np.sqrt(w)
        coeffs, *_ = np.linalg.lstsq(_quadric_basis(d @ u, d @ v) * sw[:, None], z * sw, rcond=None)
        return origin, u, v, coeffs
    return origin, u, v, np.array([(w * z).sum() / w.sum()])


def mls_project(
    points: np.ndarray,
    search_radius: float,
    polynomial_order: int = 2,
    upsampling_radius: float = 0.0,
    point_density: int = 0,
    k_search: int = 20,
    seed: int = 0,
) -> np.ndarray:
    """Smooth (and optionally upsample) a cloud by MLS projection.

    Args:
        points: (N, 3) positions.
        search_radius: Neighborhood radius for the height-field fits.
        polynomial_order: 1 (plane) or 2 (quadric height field).
        upsampling_radius: Disk radius for added samples, 0 disables upsampling.
        point_density: Desired neighbor count within ``search_radius``.
        k_search: Neighbors for the tangent-frame plane fits.
        seed: RNG seed for the added samples.

    Returns:
        (M, 3) positions: smoothed originals first, then any added samples.
    """
    from scipy.spatial import cKDTree

    n_pts = len(points)
    tree = cKDTree(points)
    frame_normals, _ = knn_pca(points, min(k_search, n_pts), tree=tree)
    rng = np.random.default_rng(seed)
    upsample = upsampling_radius > 0 and point_density > 0

    out = points.copy()
    extra: list[np.ndarray] = []
    for i, neighbors in enumerate(tree.query_ball_point(points, search_radius)):
        normal = frame_normals[i]
        origin, u, v, coeffs = _fit_height_field(
            points[neighbors], points[i], normal, search_radius, polynomial_order
        )
        out[i] = origin + _height(coeffs, 0.0, 0.0)[0] * normal

        missing = point_density - len(neighbors)
        if upsample and missing > 0:
            r = upsampling_radius * np.sqrt(rng.random(missing))
            theta = rng.uniform(0.0, 2.0 * np.pi, missing)
            x, y = r * np.cos(theta), r * np.sin(theta)
            extra.append(
                origin + np.outer(x, u) + np.outer(y, v) + np.outer(_height(coeffs, x, y), normal)
            )

    if extra:
        out = np.vstack([out] + extra)
        logger.debug(f"MLS upsampling added {len(out) - n_pts} points")
    return out
