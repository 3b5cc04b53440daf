"""Step 03: Statistical outlier removal via Open3D."""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from surfdet.core.contracts import PointCloud
from surfdet.core.errors import InsufficientDataError
from surfdet.core.step_base import BaseStep
from .config import StatisticalFilterConfig

logger = logging.getLogger(__name__)


class StatisticalFilterStep(BaseStep[PointCloud, PointCloud, StatisticalFilterConfig]):
    """Drop points whose mean k-NN distance exceeds mean + threshold * stdev."""

    name: ClassVar[str] = "statistical_filter"
    config_type: ClassVar = StatisticalFilterConfig

    def validate_inputs(self, inputs: PointCloud) -> bool:
        if len(inputs) <= self.config.mean_k:
            logger.error(
                f"Statistical filter needs more than {self.config.mean_k} points, got {len(inputs)}"
            )
            return False
        return True

    def run(self, inputs: PointCloud) -> PointCloud:
        pcd = inputs.to_o3d()
        _, kept = pcd.remove_statistical_outlier(
            nb_neighbors=self.config.mean_k,
            std_ratio=self.config.stdev_threshold,
        )
        out = inputs.select(np.asarray(kept, dtype=np.intp))
        logger.info(f"Outlier removal: {len(inputs)} -> {len(out)} points")
        if out.is_empty:
            raise InsufficientDataError("Statistical filter removed every point")
        return out
