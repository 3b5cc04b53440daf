"""I/O utilities: point-cloud and mesh files via Open3D, marker JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import numpy as np

from surfdet.core.contracts import ColoredPointCloud, Mesh, PointCloud, SurfaceMarker


def read_point_cloud(path: Path) -> PointCloud:
    """Read any Open3D-supported cloud (.ply, .pcd, .xyz, ...)."""
    import open3d as o3d

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Point cloud not found: {path}")
    pcd = o3d.io.read_point_cloud(str(path))
    return PointCloud.from_o3d(pcd)


def write_point_cloud(path: Path, cloud: PointCloud) -> None:
    import open3d as o3d

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    o3d.io.write_point_cloud(str(path), cloud.to_o3d())


def write_colored_point_cloud(path: Path, cloud: ColoredPointCloud) -> None:
    import open3d as o3d

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(cloud.points)
    pcd.colors = o3d.utility.Vector3dVector(cloud.colors.astype(np.float64) / 255.0)
    o3d.io.write_point_cloud(str(path), pcd)


def write_mesh(path: Path, mesh: Mesh) -> None:
    import open3d as o3d

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    o3d_mesh = mesh.to_o3d()
    o3d_mesh.compute_vertex_normals()
    o3d.io.write_triangle_mesh(str(path), o3d_mesh)


def write_markers_json(path: Path, markers: Sequence[SurfaceMarker]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"markers": [m.model_dump() for m in markers]}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
