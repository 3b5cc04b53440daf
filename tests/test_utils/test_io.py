"""Tests for point-cloud, mesh and marker file I/O."""

import json
from pathlib import Path

import numpy as np
import pytest

from surfdet.core.contracts import ColoredPointCloud, Mesh, PointCloud, SurfaceMarker
from surfdet.utils.io import (
    read_point_cloud,
    write_colored_point_cloud,
    write_markers_json,
    write_mesh,
    write_point_cloud,
)


def _has_deps() -> bool:
    try:
        import open3d
        return True
    except ImportError:
        return False


class TestMarkersJson:
    def test_writes_markers(self, tmp_path: Path):
        markers = [SurfaceMarker(frame_id="f", id=i, color=[1, 0, 0, 1]) for i in range(2)]
        path = tmp_path / "nested" / "markers.json"
        write_markers_json(path, markers)
        data = json.loads(path.read_text())
        assert [m["id"] for m in data["markers"]] == [0, 1]


@pytest.mark.skipif(not _has_deps(), reason="open3d not installed")
class TestOpen3dIO:
    def test_point_cloud_roundtrip(self, tmp_path: Path, make_grid):
        cloud = PointCloud(make_grid(5, 5, 0.1))
        path = tmp_path / "cloud.ply"
        write_point_cloud(path, cloud)
        loaded = read_point_cloud(path)
        np.testing.assert_allclose(loaded.points, cloud.points, atol=1e-6)

    def test_read_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_point_cloud(tmp_path / "missing.ply")

    def test_colored_cloud_and_mesh(self, tmp_path: Path):
        colored = ColoredPointCloud(np.eye(3), [[255, 0, 0], [0, 255, 0], [0, 0, 255]])
        write_colored_point_cloud(tmp_path / "colored.ply", colored)
        write_mesh(tmp_path / "mesh.ply", Mesh(np.eye(3), [[0, 1, 2]]))
        assert (tmp_path / "colored.ply").exists()
        assert (tmp_path / "mesh.ply").exists()
