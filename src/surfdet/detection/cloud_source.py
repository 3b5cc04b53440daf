"""Where incoming clouds accumulate until the next detection pass.

Two interchangeable sources: a plain buffer that keeps every point, and an
occupancy volume that fuses clouds into voxels and hands back the centers of
the occupied ones.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from surfdet.core.contracts import PointCloud
from surfdet.steps.s01_occupancy.volume import OccupancyVolume

from .config import SurfaceDetectionConfig

logger = logging.getLogger(__name__)


class CloudSource(ABC):
    """Accumulates clouds (already in the pipeline frame) and yields the working cloud."""

    @abstractmethod
    def insert(self, cloud: PointCloud) -> None:
        ...

    @abstractmethod
    def extract(self) -> PointCloud:
        ...

    @abstractmethod
    def reset(self) -> None:
        ...


class DirectBufferSource(CloudSource):
    """Concatenates every inserted point."""

    def __init__(self) -> None:
        self._clouds: list[PointCloud] = []

    def insert(self, cloud: PointCloud) -> None:
        self._clouds.append(cloud.copy())

    def extract(self) -> PointCloud:
        return PointCloud.concatenate(self._clouds)

    def reset(self) -> None:
        self._clouds.clear()


class OccupancyVolumeSource(CloudSource):
    """Fuses clouds into an ``OccupancyVolume``; extracts occupied voxel centers."""

    def __init__(self, volume: OccupancyVolume, threshold: float):
        self.volume = volume
        self.threshold = threshold

    def insert(self, cloud: PointCloud) -> None:
        self.volume.insert(cloud)

    def extract(self) -> PointCloud:
        return self.volume.extract(self.threshold)

    def reset(self) -> None:
        self.volume.reset()


def make_cloud_source(config: SurfaceDetectionConfig) -> CloudSource:
    if config.use_octomap:
        occupancy = config.occupancy_config()
        logger.info(
            f"Using occupancy volume (resolution={occupancy.resolution}, "
            f"threshold={occupancy.occupancy_threshold})"
        )
        return OccupancyVolumeSource(OccupancyVolume(occupancy), occupancy.occupancy_threshold)
    return DirectBufferSource()
