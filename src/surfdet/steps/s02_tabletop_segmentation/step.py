"""Step 02: Remove the dominant support plane with Open3D RANSAC."""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from surfdet.core.contracts import PointCloud
from surfdet.core.step_base import BaseStep
from .config import TabletopSegmentationConfig

logger = logging.getLogger(__name__)


class TabletopSegmentationStep(BaseStep[PointCloud, PointCloud, TabletopSegmentationConfig]):
    """Fit the dominant plane and keep everything that is not an inlier."""

    name: ClassVar[str] = "tabletop_segmentation"
    config_type: ClassVar = TabletopSegmentationConfig

    def validate_inputs(self, inputs: PointCloud) -> bool:
        if len(inputs) < self.config.ransac_n:
            logger.error(
                f"Plane fit needs at least {self.config.ransac_n} points, got {len(inputs)}"
            )
            return False
        return True

    def run(self, inputs: PointCloud) -> PointCloud:
        import open3d as o3d

        if self.config.seed is not None:
            o3d.utility.random.seed(self.config.seed)

        pcd = inputs.to_o3d()
        plane_model, inlier_indices = pcd.segment_plane(
            distance_threshold=self.config.distance_threshold,
            ransac_n=self.config.ransac_n,
            num_iterations=self.config.num_iterations,
        )
        a, b, c, d = plane_model
        logger.info(
            f"Support plane {a:.3f}x + {b:.3f}y + {c:.3f}z + {d:.3f} = 0 "
            f"with {len(inlier_indices)}/{len(inputs)} inliers"
        )

        keep = np.ones(len(inputs), dtype=bool)
        keep[np.asarray(inlier_indices, dtype=np.intp)] = False
        return PointCloud(inputs.points[keep])
