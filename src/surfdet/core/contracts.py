"""Shared data model passed between pipeline stages.

Point data travels as numpy-backed dataclasses; renderable markers and other
serialisable outputs are Pydantic models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Literal, Sequence

import numpy as np
from pydantic import BaseModel, Field


def _as_xyz(values, dtype=np.float64) -> np.ndarray:
    arr = np.asarray(values, dtype=dtype)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=dtype)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected an (N, 3) array, got shape {arr.shape}")
    return arr


@dataclass
class PointCloud:
    """Monochrome point cloud: (N, 3) float64 positions."""

    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))

    def __post_init__(self) -> None:
        self.points = _as_xyz(self.points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_empty(self) -> bool:
        return len(self.points) == 0

    def copy(self) -> PointCloud:
        return PointCloud(self.points.copy())

    def select(self, indices: Sequence[int] | np.ndarray) -> PointCloud:
        return PointCloud(self.points[np.asarray(indices, dtype=np.intp)])

    def finite(self) -> PointCloud:
        """Return a copy without NaN/inf rows."""
        mask = np.all(np.isfinite(self.points), axis=1)
        return PointCloud(self.points[mask])

    @classmethod
    def concatenate(cls, clouds: Sequence[PointCloud]) -> PointCloud:
        parts = [c.points for c in clouds if len(c)]
        if not parts:
            return cls()
        return cls(np.vstack(parts))

    def to_o3d(self):
        import open3d as o3d

        pcd = o3d.geometry.PointCloud()
        pcd.points = o3d.utility.Vector3dVector(self.points)
        return pcd

    @classmethod
    def from_o3d(cls, pcd) -> PointCloud:
        return cls(np.asarray(pcd.points, dtype=np.float64).copy())


@dataclass
class ColoredPointCloud:
    """Point cloud with one uint8 RGB color per point."""

    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    colors: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.uint8))

    def __post_init__(self) -> None:
        self.points = _as_xyz(self.points)
        self.colors = _as_xyz(self.colors, dtype=np.uint8)
        if len(self.points) != len(self.colors):
            raise ValueError(
                f"Color count {len(self.colors)} does not match point count {len(self.points)}"
            )

    def __len__(self) -> int:
        return len(self.points)

    def copy(self) -> ColoredPointCloud:
        return ColoredPointCloud(self.points.copy(), self.colors.copy())


@dataclass
class NormalField:
    """Per-point unit normals and surface variation (curvature)."""

    normals: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    curvature: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self) -> None:
        self.normals = _as_xyz(self.normals)
        self.curvature = np.asarray(self.curvature, dtype=np.float64).reshape(-1)
        if len(self.curvature) != len(self.normals):
            raise ValueError("Curvature and normals must have the same length")

    def __len__(self) -> int:
        return len(self.normals)

    def select(self, indices: Sequence[int] | np.ndarray) -> NormalField:
        idx = np.asarray(indices, dtype=np.intp)
        return NormalField(self.normals[idx], self.curvature[idx])


@dataclass
class SurfaceSample:
    """A cloud together with its index-aligned normal field."""

    cloud: PointCloud
    normals: NormalField

    def __post_init__(self) -> None:
        if len(self.cloud) != len(self.normals):
            raise ValueError(
                f"Normal count {len(self.normals)} does not match point count {len(self.cloud)}"
            )

    def __len__(self) -> int:
        return len(self.cloud)

    def select(self, indices: Sequence[int] | np.ndarray) -> SurfaceSample:
        return SurfaceSample(self.cloud.select(indices), self.normals.select(indices))


@dataclass
class ClusterSet:
    """Disjoint point-index groups, one per surface patch."""

    clusters: list[np.ndarray] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.clusters)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.clusters)

    def __getitem__(self, i: int) -> np.ndarray:
        return self.clusters[i]

    @property
    def sizes(self) -> list[int]:
        return [len(c) for c in self.clusters]

    @property
    def num_points(self) -> int:
        return int(sum(self.sizes))

    def largest_index(self) -> int:
        """Index of the biggest cluster (first one on ties), -1 if empty."""
        if not self.clusters:
            return -1
        return int(np.argmax(self.sizes))

    def without(self, index: int) -> ClusterSet:
        return ClusterSet([c for i, c in enumerate(self.clusters) if i != index])


@dataclass
class Mesh:
    """Triangle mesh: (V, 3) vertices and (T, 3) vertex indices."""

    vertices: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    triangles: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.int64))

    def __post_init__(self) -> None:
        self.vertices = _as_xyz(self.vertices)
        self.triangles = _as_xyz(self.triangles, dtype=np.int64)

    @property
    def num_triangles(self) -> int:
        return len(self.triangles)

    @property
    def is_empty(self) -> bool:
        return len(self.triangles) == 0

    def to_o3d(self):
        import open3d as o3d

        mesh = o3d.geometry.TriangleMesh()
        mesh.vertices = o3d.utility.Vector3dVector(self.vertices)
        mesh.triangles = o3d.utility.Vector3iVector(self.triangles.astype(np.int32))
        return mesh


class Pose(BaseModel):
    """Rigid pose: position + quaternion (x, y, z, w). Identity by default."""

    position: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0], min_length=3, max_length=3)
    orientation: list[float] = Field(
        default_factory=lambda: [0.0, 0.0, 0.0, 1.0], min_length=4, max_length=4
    )

    @classmethod
    def from_matrix(cls, transform: np.ndarray) -> Pose:
        from scipy.spatial.transform import Rotation

        transform = np.asarray(transform, dtype=np.float64)
        quat = Rotation.from_matrix(transform[:3, :3]).as_quat()
        return cls(position=transform[:3, 3].tolist(), orientation=quat.tolist())

    def to_matrix(self) -> np.ndarray:
        from scipy.spatial.transform import Rotation

        t = np.eye(4)
        t[:3, :3] = Rotation.from_quat(self.orientation).as_matrix()
        t[:3, 3] = self.position
        return t


class SurfaceMarker(BaseModel):
    """Renderable triangle-list marker built from one surface mesh."""

    frame_id: str
    ns: str = "surfaces"
    id: int = 0
    type: Literal["TRIANGLE_LIST"] = "TRIANGLE_LIST"
    action: Literal["ADD", "DELETE"] = "ADD"
    pose: Pose = Field(default_factory=Pose)
    scale: list[float] = Field(default_factory=lambda: [1.0, 1.0, 1.0], min_length=3, max_length=3)
    color: list[float] = Field(..., min_length=4, max_length=4, description="RGBA in [0, 1]")
    points: list[list[float]] = Field(
        default_factory=list, description="Triangle corners, three consecutive entries per triangle"
    )

    @property
    def num_triangles(self) -> int:
        return len(self.points) // 3
