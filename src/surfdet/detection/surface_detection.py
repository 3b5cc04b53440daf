"""Surface detection orchestrator.

Accumulates point clouds and turns them into surface meshes:
cloud source -> tabletop removal -> statistical filter -> voxel downsampling
-> normals (k-NN or MLS) -> region growing -> per-cluster triangulation.

Stage errors never leave this class: pipeline-wide failures make
``find_surfaces`` return False and keep the previous results, while a
cluster that cannot be triangulated is logged, counted and skipped.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import numpy as np

from surfdet.core.contracts import ColoredPointCloud, Mesh, PointCloud, SurfaceMarker
from surfdet.core.errors import (
    ConfigurationError,
    GeometricFailure,
    InsufficientDataError,
    SurfaceDetectionError,
)
from surfdet.core.params import load_config
from surfdet.steps.s02_tabletop_segmentation.step import TabletopSegmentationStep
from surfdet.steps.s03_statistical_filter.step import StatisticalFilterStep
from surfdet.steps.s04_voxel_downsampling.step import VoxelDownsamplingStep
from surfdet.steps.s05_normal_estimation.step import MlsSmoothingStep, NormalEstimationStep
from surfdet.steps.s06_region_growing._colors import cluster_color
from surfdet.steps.s06_region_growing.step import RegionGrowingStep
from surfdet.steps.s07_triangulation.step import TriangulationStep

from .cloud_source import CloudSource, make_cloud_source
from .config import SurfaceDetectionConfig
from .contracts import ResultsSummary
from .markers import mesh_to_marker

logger = logging.getLogger(__name__)


@dataclass
class _RunResult:
    fused_points: int = 0
    points_processed: int = 0
    meshes: list[Mesh] = field(default_factory=list)
    markers: list[SurfaceMarker] = field(default_factory=list)
    surface_clouds: list[PointCloud] = field(default_factory=list)
    colored_cloud: ColoredPointCloud = field(default_factory=ColoredPointCloud)
    triangulation_failures: int = 0


def _normal_stage(config: SurfaceDetectionConfig):
    if config.normal_mode == "mls":
        return MlsSmoothingStep(config.mls_config())
    return NormalEstimationStep(config.normal_estimation_config())


class SurfaceDetection:
    """Stateful surface-detection pipeline.

    Typical use::

        detector = SurfaceDetection()
        detector.load_parameters("surface_detection", "configs/surface_detection.yaml")
        detector.init()
        for cloud in clouds:
            detector.add_cloud(cloud)
        if detector.find_surfaces():
            markers = detector.get_surface_markers()

    ``add_cloud`` and ``find_surfaces`` share one lock, so clouds arriving
    from another thread wait for a running detection pass to finish.
    """

    def __init__(
        self,
        config: Optional[SurfaceDetectionConfig] = None,
        param_store: Path | str | Mapping[str, Any] | None = None,
    ):
        self._config = config or SurfaceDetectionConfig()
        self._param_store = param_store
        self._lock = threading.RLock()
        self._initialized = False
        self._source: Optional[CloudSource] = None
        self._reset_acquisition()
        self._reset_results()

    # ── configuration & lifecycle ───────────────────────────────────

    @property
    def config(self) -> SurfaceDetectionConfig:
        return self._config

    @property
    def initialized(self) -> bool:
        return self._initialized

    def load_parameters(
        self,
        namespace: str = "",
        source: Path | str | Mapping[str, Any] | None = None,
    ) -> bool:
        """Replace the configuration with the parameters under ``namespace``.

        Either every parameter loads or nothing changes.
        """
        source = source if source is not None else self._param_store
        try:
            if source is None:
                raise ConfigurationError("No parameter source given")
            config = load_config(source, SurfaceDetectionConfig, namespace)
        except ConfigurationError as e:
            logger.error(f"Failed to load parameters: {e}")
            return False

        with self._lock:
            self._config = config
            logger.info(f"Loaded parameters from namespace '{namespace or '/'}'")
            if self._initialized:
                logger.warning("Parameters changed after init(); re-initializing, accumulated clouds dropped")
                self.init()
        return True

    def init(self) -> bool:
        """Build the stages for the current configuration and reset session state."""
        cfg = self._config
        with self._lock:
            self._source = make_cloud_source(cfg)
            self._tabletop = (
                TabletopSegmentationStep(cfg.tabletop_config())
                if cfg.use_tabletop_segmentation else None
            )
            self._filter = StatisticalFilterStep(cfg.statistical_filter_config())
            self._downsampler = VoxelDownsamplingStep(cfg.voxel_config())
            self._normals = _normal_stage(cfg)
            self._segmenter = RegionGrowingStep(cfg.region_growing_config())
            self._triangulator = TriangulationStep(cfg.triangulation_config())
            self._reset_acquisition()
            self._reset_results()
            self._initialized = True
        logger.info(
            f"Surface detection initialized (frame '{cfg.frame_id}', "
            f"octomap={cfg.use_octomap}, normals={cfg.normal_mode})"
        )
        return True

    # ── acquisition ─────────────────────────────────────────────────

    def add_cloud(self, cloud: PointCloud | np.ndarray) -> bool:
        """Accumulate a cloud already expressed in ``frame_id``.

        Non-finite points are dropped. No frame transformation is performed.
        """
        if not self._initialized:
            logger.error("add_cloud() called before init()")
            return False
        if not isinstance(cloud, PointCloud):
            try:
                cloud = PointCloud(cloud)
            except ValueError as e:
                logger.error(f"Rejected cloud: {e}")
                return False
        finite = cloud.finite()
        if len(finite) < len(cloud):
            logger.debug(f"Dropped {len(cloud) - len(finite)} non-finite points")

        with self._lock:
            self._source.insert(finite)
            self._acquired_clouds += 1
            self._acquired_points += len(finite)
        logger.info(f"Added cloud #{self._acquired_clouds} with {len(finite)} points")
        return True

    def clear_clouds(self) -> None:
        """Discard all accumulated input; results and configuration stay."""
        with self._lock:
            if self._source is not None:
                self._source.reset()
            self._reset_acquisition()

    # ── detection ───────────────────────────────────────────────────

    def find_surfaces(self) -> bool:
        """Run the full pipeline on the accumulated data.

        Results are replaced only when the run succeeds.
        """
        if not self._initialized:
            logger.error("find_surfaces() called before init()")
            return False

        with self._lock:
            try:
                result = self._run_pipeline()
            except SurfaceDetectionError as e:
                logger.error(f"Surface detection failed: {e}")
                self._last_run_succeeded = False
                self._last_error = str(e)
                return False
            self._commit(result)

        logger.info(
            f"Surface detection found {len(result.surface_clouds)} surfaces, "
            f"built {len(result.meshes)} meshes"
        )
        return True

    def _run_pipeline(self) -> _RunResult:
        cfg = self._config
        result = _RunResult()

        cloud = self._source.extract()
        result.fused_points = len(cloud)
        if cloud.is_empty:
            raise InsufficientDataError("No points accumulated")
        logger.info(f"Working cloud: {len(cloud)} points")

        if self._tabletop is not None:
            cloud = self._tabletop.execute(cloud)
        cloud = self._filter.execute(cloud)
        cloud = self._downsampler.execute(cloud)
        sample = self._normals.execute(cloud)
        result.points_processed = len(sample)

        segmentation = self._segmenter.execute(sample)
        result.colored_cloud = segmentation.colored_cloud

        for i, members in enumerate(segmentation.clusters):
            patch = sample.select(members)
            result.surface_clouds.append(patch.cloud)
            try:
                mesh = self._triangulator.execute(patch)
            except GeometricFailure as e:
                logger.warning(f"Skipping cluster {i} ({len(patch)} points): {e}")
                result.triangulation_failures += 1
                continue
            result.meshes.append(mesh)
            result.markers.append(
                mesh_to_marker(
                    mesh,
                    frame_id=cfg.frame_id,
                    marker_id=len(result.markers),
                    color=cluster_color(i),
                    alpha=cfg.marker_alpha,
                )
            )
        return result

    def _commit(self, result: _RunResult) -> None:
        self._meshes = result.meshes
        self._markers = result.markers
        self._surface_clouds = result.surface_clouds
        self._colored_cloud = result.colored_cloud
        self._fused_points = result.fused_points
        self._points_processed = result.points_processed
        self._triangulation_failures = result.triangulation_failures
        self._last_run_succeeded = True
        self._last_error = None

    # ── reset ───────────────────────────────────────────────────────

    def _reset_acquisition(self) -> None:
        self._acquired_clouds = 0
        self._acquired_points = 0

    def _reset_results(self) -> None:
        self._meshes: list[Mesh] = []
        self._markers: list[SurfaceMarker] = []
        self._surface_clouds: list[PointCloud] = []
        self._colored_cloud = ColoredPointCloud()
        self._fused_points = 0
        self._points_processed = 0
        self._triangulation_failures = 0
        self._last_run_succeeded: Optional[bool] = None
        self._last_error: Optional[str] = None

    def clear_results(self) -> None:
        """Drop derived results; configuration and accumulated clouds are kept."""
        with self._lock:
            self._reset_results()

    # ── results ─────────────────────────────────────────────────────

    @staticmethod
    def mesh_to_marker(mesh: Mesh, frame_id: str = "world_frame", **kwargs) -> SurfaceMarker:
        return mesh_to_marker(mesh, frame_id, **kwargs)

    def get_results(self) -> ResultsSummary:
        return ResultsSummary(
            acquired_clouds=self._acquired_clouds,
            acquired_points=self._acquired_points,
            fused_points=self._fused_points,
            points_processed=self._points_processed,
            clusters_found=len(self._surface_clouds),
            meshes_built=len(self._meshes),
            triangulation_failures=self._triangulation_failures,
            last_run_succeeded=self._last_run_succeeded,
            last_error=self._last_error,
        )

    def get_results_summary(self) -> str:
        return self.get_results().describe()

    def get_surface_markers(self) -> list[SurfaceMarker]:
        return [m.model_copy(deep=True) for m in self._markers]

    def get_meshes(self) -> list[Mesh]:
        return [Mesh(m.vertices.copy(), m.triangles.copy()) for m in self._meshes]

    def get_surface_clouds(self) -> list[PointCloud]:
        return [c.copy() for c in self._surface_clouds]

    def get_full_cloud(self) -> PointCloud:
        """The accumulated working cloud (occupied voxel centers with octomap)."""
        with self._lock:
            if self._source is None:
                return PointCloud()
            return self._source.extract()

    def get_region_colored_cloud(self) -> ColoredPointCloud:
        return self._colored_cloud.copy()
