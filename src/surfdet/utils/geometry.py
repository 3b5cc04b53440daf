"""3D geometry utilities: local PCA, normal orientation, rigid transforms."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

# Neighborhood tensors are (chunk, k, 3); keep them to a few tens of MB.
_PCA_CHUNK = 8192


def knn_pca(points: np.ndarray, k: int, tree=None) -> tuple[np.ndarray, np.ndarray]:
    """Per-point plane fit over the k nearest neighbors (query point included).

    Args:
        points: (N, 3) positions, N >= k.
        k: Neighborhood size.
        tree: Optional prebuilt ``scipy.spatial.cKDTree`` over ``points``.

    Returns:
        (normals, curvature): (N, 3) unit normals (smallest-eigenvalue
        eigenvector, unoriented) and (N,) surface variation
        lambda_0 / (lambda_0 + lambda_1 + lambda_2).
    """
    from scipy.spatial import cKDTree

    n = len(points)
    if n == 0:
        return np.zeros((0, 3)), np.zeros(0)
    k = max(1, min(k, n))
    tree = tree if tree is not None else cKDTree(points)

    normals = np.empty((n, 3), dtype=np.float64)
    curvature = np.empty(n, dtype=np.float64)
    for start in range(0, n, _PCA_CHUNK):
        stop = min(start + _PCA_CHUNK, n)
        _, idx = tree.query(points[start:stop], k=k)
        idx = np.asarray(idx).reshape(stop - start, k)
        neigh = points[idx]
        centered = neigh - neigh.mean(axis=1, keepdims=True)
        cov = np.einsum("nki,nkj->nij", centered, centered) / k
        eigvals, eigvecs = np.linalg.eigh(cov)
        normals[start:stop] = eigvecs[:, :, 0]
        total = eigvals.sum(axis=1)
        curvature[start:stop] = np.where(total > 0, eigvals[:, 0] / np.maximum(total, 1e-300), 0.0)
    return normals, np.clip(curvature, 0.0, None)


def orient_towards_viewpoint(
    points: np.ndarray, normals: np.ndarray, viewpoint: np.ndarray | list[float]
) -> np.ndarray:
    """Flip normals so they point at ``viewpoint``."""
    vp = np.asarray(viewpoint, dtype=np.float64)
    flip = np.einsum("ij,ij->i", vp - points, normals) < 0
    out = normals.copy()
    out[flip] *= -1.0
    return out


def plane_frame(points: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Principal frame of a point set with at least 3 points.

    Returns:
        (centroid, axes, singular_values): axes is (3, 3) with rows ordered by
        decreasing spread, so ``axes[2]`` is the best-fit plane normal.
    """
    centroid = points.mean(axis=0)
    _, s, vt = np.linalg.svd(points - centroid, full_matrices=False)
    return centroid, vt, s


def rpy_to_matrix(rx: float, ry: float, rz: float) -> np.ndarray:
    """Fixed-axis roll/pitch/yaw to a 3x3 rotation matrix."""
    from scipy.spatial.transform import Rotation

    return Rotation.from_euler("xyz", [rx, ry, rz]).as_matrix()


def make_transform(rotation: np.ndarray | None = None, translation=None) -> np.ndarray:
    """Build a 4x4 homogeneous transform."""
    t = np.eye(4)
    if rotation is not None:
        t[:3, :3] = rotation
    if translation is not None:
        t[:3, 3] = np.asarray(translation, dtype=np.float64)
    return t


def axis_rotation(axis: str, angle: float) -> np.ndarray:
    """4x4 rotation of ``angle`` radians about the x, y or z axis."""
    from scipy.spatial.transform import Rotation

    return make_transform(Rotation.from_euler(axis, angle).as_matrix())


def matrix_to_quaternion(matrix: np.ndarray) -> np.ndarray:
    """3x3 rotation matrix to quaternion (x, y, z, w)."""
    from scipy.spatial.transform import Rotation

    return Rotation.from_matrix(matrix).as_quat()
