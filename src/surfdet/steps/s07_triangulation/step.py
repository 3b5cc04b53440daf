"""Step 07: Greedy projection triangulation of one surface patch.

The mesh grows outward from the point nearest the patch centroid, visiting
points breadth-first over their radius neighborhoods. Each visited point is
fanned to the neighbors inside its own search radius: the neighborhood is
projected onto the point's tangent plane, Delaunay-triangulated there, and the
triangles around the point become candidates. A point's radius is the smaller
of ``search_radius`` and ``mu`` times its nearest-neighbor distance, and at
most ``max_nearest_neighbors`` neighbors are considered.

Candidates are screened in 3-D for interior angle bounds and the angle between
vertex normals, then accepted in growth order as long as the mesh stays
manifold.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import ClassVar

import numpy as np

from surfdet.core.contracts import Mesh, SurfaceSample
from surfdet.core.errors import GeometricFailure
from surfdet.core.step_base import BaseStep
from surfdet.utils.geometry import plane_frame
from .config import TriangulationConfig

logger = logging.getLogger(__name__)

_EPS = 1e-12

# (first, second) corner pairs for the three edges of a triangle
_EDGES = ((0, 1), (1, 2), (2, 0))


def _interior_angles(tri_pts: np.ndarray) -> np.ndarray:
    """(T, 3, 3) corner positions -> (T, 3) interior angles in radians."""
    angles = np.empty(tri_pts.shape[:2])
    for corner in range(3):
        a = tri_pts[:, corner]
        b = tri_pts[:, (corner + 1) % 3]
        c = tri_pts[:, (corner + 2) % 3]
        e1, e2 = b - a, c - a
        denom = np.linalg.norm(e1, axis=1) * np.linalg.norm(e2, axis=1)
        cos = np.einsum("ij,ij->i", e1, e2) / np.maximum(denom, _EPS)
        angles[:, corner] = np.arccos(np.clip(cos, -1.0, 1.0))
    return angles


def _tangent_basis(normal: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    helper = np.array([1.0, 0.0, 0.0]) if abs(normal[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    u = np.cross(normal, helper)
    u /= np.linalg.norm(u)
    return u, np.cross(normal, u)


def _fan(center: int, ring: np.ndarray, points: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """Triangles touching ``center`` in the tangent-plane Delaunay of its neighborhood."""
    from scipy.spatial import Delaunay, QhullError

    local = np.concatenate([[center], ring])
    u, v = _tangent_basis(normal)
    d = points[local] - points[center]
    try:
        simplices = Delaunay(np.column_stack([d @ u, d @ v])).simplices
    except QhullError:
        # Neighborhood is collinear in the tangent plane
        return np.empty((0, 3), dtype=np.int64)
    return local[simplices[np.any(simplices == 0, axis=1)]]


def _grow_candidates(
    points: np.ndarray, normals: np.ndarray, centroid: np.ndarray, config: TriangulationConfig
) -> np.ndarray:
    """Fan triangles of every point, in breadth-first order from the central seed.

    With ``normal_consistency`` each newly reached point has its normal
    flipped to agree with the point that reached it (``normals`` is updated
    in place).
    """
    from scipy.spatial import cKDTree

    n = len(points)
    k = min(config.max_nearest_neighbors + 1, n)
    dists, idx = cKDTree(points).query(points, k=k, distance_upper_bound=config.search_radius)
    radius = np.minimum(config.search_radius, config.mu * dists[:, 1])
    in_reach = (dists <= radius[:, None]) & (idx != np.arange(n)[:, None])

    visited = np.zeros(n, dtype=bool)
    seen: set[tuple[int, ...]] = set()
    ordered: list[tuple[int, ...]] = []
    for seed in np.argsort(np.linalg.norm(points - centroid, axis=1), kind="stable"):
        if visited[seed]:
            continue
        visited[seed] = True
        front = deque([int(seed)])
        while front:
            i = front.popleft()
            ring = idx[i][in_reach[i]]
            fresh = ring[~visited[ring]]
            if config.normal_consistency:
                flip = fresh[normals[fresh] @ normals[i] < 0]
                normals[flip] *= -1.0
            visited[fresh] = True
            front.extend(fresh.tolist())
            if len(ring) < 2:
                continue
            for tri in _fan(i, ring, points, normals[i]).tolist():
                key = tuple(sorted(tri))
                if key not in seen:
                    seen.add(key)
                    ordered.append(key)
    return np.array(ordered, dtype=np.int64).reshape(-1, 3)


def _same_side(points: np.ndarray, normals: np.ndarray, p: int, q: int, r: int, s: int) -> bool:
    """Whether ``r`` and ``s`` lie on the same side of edge (p, q) on the surface."""
    up = normals[p] + np.copysign(1.0, normals[p] @ normals[q]) * normals[q]
    edge = points[q] - points[p]
    side_r = np.cross(edge, points[r] - points[p]) @ up
    side_s = np.cross(edge, points[s] - points[p]) @ up
    return side_r * side_s > 0


def _keep_manifold(triangles: np.ndarray, points: np.ndarray, normals: np.ndarray) -> np.ndarray:
    """Accept triangles in order unless one would fold over an accepted one.

    An edge takes at most two triangles, with their opposite corners on
    different sides of it.
    """
    opposite: dict[tuple[int, int], list[int]] = {}
    kept = []
    for a, b, c in triangles.tolist():
        corners = ((a, b, c), (b, c, a), (c, a, b))
        blocked = False
        for p, q, r in corners:
            used = opposite.get((min(p, q), max(p, q)))
            if used and (len(used) >= 2 or _same_side(points, normals, p, q, r, used[0])):
                blocked = True
                break
        if blocked:
            continue
        for p, q, r in corners:
            opposite.setdefault((min(p, q), max(p, q)), []).append(r)
        kept.append((a, b, c))
    return np.array(kept, dtype=np.int64).reshape(-1, 3)


def triangulate_patch(
    points: np.ndarray, normals: np.ndarray, config: TriangulationConfig
) -> np.ndarray:
    """Triangulate a patch and return accepted (T, 3) vertex index triples.

    Raises:
        GeometricFailure: too few points, a collinear patch, or no triangle
            satisfying the constraints.
    """
    n = len(points)
    if n < 3:
        raise GeometricFailure(f"Triangulation needs at least 3 points, got {n}")

    centroid, axes, spread = plane_frame(points)
    if spread[1] <= _EPS * max(spread[0], 1.0):
        raise GeometricFailure("Patch is degenerate (collinear points)")
    normals = normals / np.maximum(np.linalg.norm(normals, axis=1, keepdims=True), _EPS)

    candidates = _grow_candidates(points, normals, centroid, config)
    if len(candidates) == 0:
        raise GeometricFailure(f"No point has two neighbors within the search radius ({n} points)")

    accept = np.ones(len(candidates), dtype=bool)
    cos_surface = np.cos(config.max_surface_angle)
    for i, j in _EDGES:
        a, b = candidates[:, i], candidates[:, j]
        accept &= np.linalg.norm(points[a] - points[b], axis=1) > _EPS
        dots = np.einsum("ij,ij->i", normals[a], normals[b])
        if not config.normal_consistency:
            dots = np.abs(dots)
        accept &= dots >= cos_surface

    angles = _interior_angles(points[candidates])
    accept &= np.all((angles >= config.min_angle) & (angles <= config.max_angle), axis=1)

    triangles = _keep_manifold(candidates[accept], points, normals)
    if len(triangles) == 0:
        raise GeometricFailure(
            f"No triangle satisfies the constraints ({len(candidates)} candidates, {n} points)"
        )

    # Consistent winding: face normals agree with the reference orientation
    tri_pts = points[triangles]
    face_normals = np.cross(tri_pts[:, 1] - tri_pts[:, 0], tri_pts[:, 2] - tri_pts[:, 0])
    if config.normal_consistency:
        reference = normals[triangles].sum(axis=1)
    else:
        reference = np.broadcast_to(axes[2], face_normals.shape)
    flip = np.einsum("ij,ij->i", face_normals, reference) < 0
    triangles[flip] = triangles[flip][:, [0, 2, 1]]
    logger.debug(f"Accepted {len(triangles)}/{len(candidates)} candidate triangles")
    return triangles


class TriangulationStep(BaseStep[SurfaceSample, Mesh, TriangulationConfig]):
    name: ClassVar[str] = "triangulation"
    config_type: ClassVar = TriangulationConfig

    def validate_inputs(self, inputs: SurfaceSample) -> bool:
        # Too-small patches are a per-patch GeometricFailure raised by run()
        return True

    def run(self, inputs: SurfaceSample) -> Mesh:
        points = inputs.cloud.points
        triangles = triangulate_patch(points, inputs.normals.normals, self.config)
        logger.debug(f"Triangulated {len(points)} points into {len(triangles)} triangles")
        return Mesh(points.copy(), triangles)
