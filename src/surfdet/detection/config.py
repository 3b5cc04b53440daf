"""Flat configuration of the surface-detection pipeline.

Keys match the parameter-store names. Stage config slices are derived from a
single loaded instance so every stage sees the same values.
"""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from surfdet.steps.s01_occupancy.config import OccupancyConfig
from surfdet.steps.s02_tabletop_segmentation.config import TabletopSegmentationConfig
from surfdet.steps.s03_statistical_filter.config import StatisticalFilterConfig
from surfdet.steps.s04_voxel_downsampling.config import VoxelDownsamplingConfig
from surfdet.steps.s05_normal_estimation.config import MlsSmoothingConfig, NormalEstimationConfig
from surfdet.steps.s06_region_growing.config import RegionGrowingConfig
from surfdet.steps.s07_triangulation.config import TriangulationConfig

NormalMode = Literal["normal_estimation", "mls"]


class SurfaceDetectionConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Acquisition
    frame_id: str = Field("world_frame", description="Reference frame of all input clouds")
    use_octomap: bool = Field(False, description="Fuse clouds into the occupancy volume")

    # Statistical filter and normal estimation
    stout_mean: int = Field(50, ge=1, description="Statistical filter neighbor count")
    stout_stdev_threshold: float = Field(1.0, gt=0, description="Statistical filter stdev multiplier")
    k_search: int = Field(50, ge=3, description="Normal estimation neighbor count")
    normal_mode: NormalMode = Field(
        "normal_estimation", description="Normal source: plain k-NN estimation or MLS smoothing"
    )

    # Region growing
    rg_min_cluster_size: int = Field(100, ge=1)
    rg_max_cluster_size: int = Field(100000, ge=1)
    rg_neighbors: int = Field(50, ge=1)
    rg_smoothness_threshold: float = Field(math.radians(7.0), gt=0, description="Radians")
    rg_curvature_threshold: float = Field(1.0)

    # Fast triangulation
    tr_search_radius: float = Field(0.01, gt=0)
    tr_mu: float = Field(2.5, gt=0)
    tr_nearest_neighbors: int = Field(100, ge=2)
    tr_max_surface_angle: float = Field(math.pi / 4, gt=0, description="Radians")
    tr_min_angle: float = Field(math.pi / 18, ge=0, description="Radians")
    tr_max_angle: float = Field(2 * math.pi / 3, le=math.pi, description="Radians")
    tr_normal_consistency: bool = Field(False)

    # Voxel downsampling
    voxel_leaf: float = Field(0.01, description="Voxel edge length; also the occupancy resolution")

    # Occupancy volume
    occupancy_threshold: float = Field(0.1, ge=0, le=1)

    # Moving least squares smoothing
    mls_upsampling_radius: float = Field(0.01, ge=0)
    mls_search_radius: float = Field(0.01, gt=0)
    mls_point_density: int = Field(40, ge=0)

    # Tabletop segmentation
    use_tabletop_segmentation: bool = Field(True)
    tabletop_seg_distance_thresh: float = Field(0.005, gt=0)

    # Options
    marker_alpha: float = Field(1.0, ge=0, le=1)
    ignore_largest_cluster: bool = Field(False)

    @model_validator(mode="after")
    def _check_triangle_angles(self):
        if self.tr_min_angle >= self.tr_max_angle:
            raise ValueError("tr_min_angle must be smaller than tr_max_angle")
        return self

    # ── stage slices ──────────────────────────────────────────────────

    def occupancy_config(self) -> OccupancyConfig:
        resolution = self.voxel_leaf if self.voxel_leaf > 0 else OccupancyConfig().resolution
        return OccupancyConfig(resolution=resolution, occupancy_threshold=self.occupancy_threshold)

    def tabletop_config(self) -> TabletopSegmentationConfig:
        return TabletopSegmentationConfig(distance_threshold=self.tabletop_seg_distance_thresh)

    def statistical_filter_config(self) -> StatisticalFilterConfig:
        return StatisticalFilterConfig(
            mean_k=self.stout_mean, stdev_threshold=self.stout_stdev_threshold
        )

    def voxel_config(self) -> VoxelDownsamplingConfig:
        return VoxelDownsamplingConfig(leaf_size=self.voxel_leaf)

    def normal_estimation_config(self) -> NormalEstimationConfig:
        return NormalEstimationConfig(k_search=self.k_search)

    def mls_config(self) -> MlsSmoothingConfig:
        return MlsSmoothingConfig(
            search_radius=self.mls_search_radius,
            upsampling_radius=self.mls_upsampling_radius,
            point_density=self.mls_point_density,
            k_search=self.k_search,
        )

    def region_growing_config(self) -> RegionGrowingConfig:
        return RegionGrowingConfig(
            min_cluster_size=self.rg_min_cluster_size,
            max_cluster_size=self.rg_max_cluster_size,
            neighbors=self.rg_neighbors,
            smoothness_threshold=self.rg_smoothness_threshold,
            curvature_threshold=self.rg_curvature_threshold,
            ignore_largest_cluster=self.ignore_largest_cluster,
        )

    def triangulation_config(self) -> TriangulationConfig:
        return TriangulationConfig(
            search_radius=self.tr_search_radius,
            mu=self.tr_mu,
            max_nearest_neighbors=self.tr_nearest_neighbors,
            max_surface_angle=self.tr_max_surface_angle,
            min_angle=self.tr_min_angle,
            max_angle=self.tr_max_angle,
            normal_consistency=self.tr_normal_consistency,
        )
