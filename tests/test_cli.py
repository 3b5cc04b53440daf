"""Tests for the surfdet command line."""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from surfdet.cli import app

CONFIG_FILE = Path(__file__).resolve().parents[1] / "configs" / "surface_detection.yaml"

runner = CliRunner()


def _has_deps() -> bool:
    try:
        import open3d
        return True
    except ImportError:
        return False


class TestInfo:
    def test_lists_parameters(self):
        result = runner.invoke(app, ["info", "--config", str(CONFIG_FILE)])
        assert result.exit_code == 0
        assert "stout_mean" in result.output

    def test_bad_namespace(self):
        result = runner.invoke(app, ["info", "--config", str(CONFIG_FILE), "--namespace", "nope"])
        assert result.exit_code == 1


class TestScanPoses:
    def test_lists_poses(self, tmp_path: Path):
        path = tmp_path / "scan.yaml"
        path.write_text(yaml.dump({"robot_scan": {"num_scan_points": 4}}))
        result = runner.invoke(app, ["scan-poses", "--config", str(path)])
        assert result.exit_code == 0
        assert "Scan poses" in result.output


@pytest.mark.skipif(not _has_deps(), reason="open3d not installed")
class TestDetect:
    def test_writes_outputs(self, tabletop_scene, tmp_path: Path):
        from surfdet.utils.io import write_point_cloud

        cloud_path = tmp_path / "scene.ply"
        write_point_cloud(cloud_path, tabletop_scene)
        out_dir = tmp_path / "out"
        result = runner.invoke(
            app, ["detect", str(cloud_path), "--config", str(CONFIG_FILE), "-o", str(out_dir)]
        )
        assert result.exit_code == 0, result.output
        assert (out_dir / "markers.json").exists()
        assert (out_dir / "segmentation.ply").exists()
        assert (out_dir / "surface_000.ply").exists()

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(
            app, ["detect", str(tmp_path / "nope.ply"), "--config", str(CONFIG_FILE)]
        )
        assert result.exit_code == 1
