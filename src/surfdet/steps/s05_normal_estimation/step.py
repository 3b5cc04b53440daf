"""Step 05: Per-point normals, either by plain k-NN plane fits or MLS smoothing.

Both stages return a ``SurfaceSample`` (cloud + index-aligned normals and
curvature) so the orchestrator can pick one at initialization and treat them
the same afterwards.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from surfdet.core.contracts import NormalField, PointCloud, SurfaceSample
from surfdet.core.step_base import BaseStep
from surfdet.utils.geometry import knn_pca, orient_towards_viewpoint
from ._mls import mls_project
from .config import MlsSmoothingConfig, NormalEstimationConfig

logger = logging.getLogger(__name__)


class NormalEstimationStep(BaseStep[PointCloud, SurfaceSample, NormalEstimationConfig]):
    """Normals from a least-squares plane over each point's k nearest neighbors."""

    name: ClassVar[str] = "normal_estimation"
    config_type: ClassVar = NormalEstimationConfig

    def validate_inputs(self, inputs: PointCloud) -> bool:
        if len(inputs) <= self.config.k_search:
            logger.error(
                f"Normal estimation needs more than k_search={self.config.k_search} points, "
                f"got {len(inputs)}"
            )
            return False
        return True

    def run(self, inputs: PointCloud) -> SurfaceSample:
        normals, curvature = knn_pca(inputs.points, self.config.k_search)
        normals = orient_towards_viewpoint(inputs.points, normals, self.config.viewpoint)
        logger.info(f"Estimated {len(normals)} normals (k={self.config.k_search})")
        return SurfaceSample(inputs.copy(), NormalField(normals, curvature))


class MlsSmoothingStep(BaseStep[PointCloud, SurfaceSample, MlsSmoothingConfig]):
    """Moving-least-squares smoothing with optional random-uniform-density upsampling."""

    name: ClassVar[str] = "mls_smoothing"
    config_type: ClassVar = MlsSmoothingConfig

    def validate_inputs(self, inputs: PointCloud) -> bool:
        if len(inputs) <= self.config.k_search:
            logger.error(
                f"MLS smoothing needs more than k_search={self.config.k_search} points, "
                f"got {len(inputs)}"
            )
            return False
        return True

    def run(self, inputs: PointCloud) -> SurfaceSample:
        cfg = self.config
        points = mls_project(
            inputs.points,
            search_radius=cfg.search_radius,
            polynomial_order=cfg.polynomial_order,
            upsampling_radius=cfg.upsampling_radius,
            point_density=cfg.point_density,
            k_search=cfg.k_search,
            seed=cfg.seed,
        )
        # Normals and curvature come from one fit over the smoothed cloud
        normals, curvature = knn_pca(points, cfg.k_search)
        normals = orient_towards_viewpoint(points, normals, cfg.viewpoint)
        logger.info(f"MLS: {len(inputs)} -> {len(points)} points (r={cfg.search_radius})")
        return SurfaceSample(PointCloud(points), NormalField(normals, curvature))
