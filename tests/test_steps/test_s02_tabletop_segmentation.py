"""Tests for S02: Tabletop segmentation."""

import numpy as np
import pytest

from surfdet.core.contracts import PointCloud
from surfdet.core.errors import InsufficientDataError
from surfdet.steps.s02_tabletop_segmentation.config import TabletopSegmentationConfig
from surfdet.steps.s02_tabletop_segmentation.step import TabletopSegmentationStep


def _has_deps() -> bool:
    try:
        import open3d
        return True
    except ImportError:
        return False


class TestTabletopConfig:
    def test_defaults(self):
        cfg = TabletopSegmentationConfig()
        assert cfg.distance_threshold == 0.005
        assert cfg.ransac_n == 3


@pytest.mark.skipif(not _has_deps(), reason="open3d not installed")
class TestTabletopSegmentation:
    def test_removes_support_plane(self, table_plane, bump):
        step = TabletopSegmentationStep(TabletopSegmentationConfig())
        out = step.execute(PointCloud(np.vstack([table_plane, bump])))
        # Only the bump survives, minus its lowest ring inside the inlier band
        assert len(out) < len(bump)
        assert len(out) > 0.9 * len(bump)
        assert out.points[:, 2].min() > 0.004

    def test_output_is_subset_of_input(self, tabletop_scene):
        out = TabletopSegmentationStep(TabletopSegmentationConfig()).execute(tabletop_scene)
        scene = set(map(tuple, tabletop_scene.points.tolist()))
        assert all(tuple(p) in scene for p in out.points.tolist())

    def test_too_few_points(self):
        step = TabletopSegmentationStep(TabletopSegmentationConfig())
        with pytest.raises(InsufficientDataError):
            step.execute(PointCloud([[0, 0, 0], [1, 0, 0]]))
