"""Step 04: Voxel-grid downsampling on an absolute grid.

Cells are ``floor(p / leaf)``, independent of the cloud's bounding box, so
downsampling a downsampled cloud with the same leaf is a no-op: a centroid
always lies inside the cell whose points produced it.
"""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from surfdet.core.contracts import PointCloud
from surfdet.core.step_base import BaseStep
from .config import VoxelDownsamplingConfig

logger = logging.getLogger(__name__)


def voxel_downsample(points: np.ndarray, leaf_size: float) -> np.ndarray:
    """Replace all points of each occupied voxel by their centroid.

    Args:
        points: (N, 3) positions.
        leaf_size: Voxel edge length.

    Returns:
        (M, 3) centroids ordered by voxel key, M <= N.
    """
    if len(points) == 0 or leaf_size <= 0:
        return points.copy()

    keys = np.floor(points / leaf_size).astype(np.int64)
    _, inverse, counts = np.unique(keys, axis=0, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)

    sums = np.zeros((len(counts), 3), dtype=np.float64)
    np.add.at(sums, inverse, points)
    return sums / counts[:, None]


class VoxelDownsamplingStep(BaseStep[PointCloud, PointCloud, VoxelDownsamplingConfig]):
    name: ClassVar[str] = "voxel_downsampling"
    config_type: ClassVar = VoxelDownsamplingConfig

    def validate_inputs(self, inputs: PointCloud) -> bool:
        return True

    def run(self, inputs: PointCloud) -> PointCloud:
        out = PointCloud(voxel_downsample(inputs.points, self.config.leaf_size))
        logger.info(
            f"Voxel downsample ({self.config.leaf_size}): {len(inputs)} -> {len(out)} points"
        )
        return out
