"""Step 06: Normal-aware region growing segmentation.

Seeds are visited in ascending-curvature order. A neighbor joins the region
when its normal is within the smoothness angle of the current seed's normal
(sign-agnostic); it goes on to seed further growth only if its own curvature is
below the curvature threshold. Points rejected by every region stay free to
start regions of their own.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import ClassVar

import numpy as np

from surfdet.core.contracts import ClusterSet, ColoredPointCloud, SurfaceSample
from surfdet.core.step_base import BaseStep
from ._colors import UNCLUSTERED_COLOR, cluster_color_u8
from .config import RegionGrowingConfig
from .contracts import Segmentation

logger = logging.getLogger(__name__)


def _neighbor_table(points: np.ndarray, k: int) -> np.ndarray:
    """(N, k') nearest-neighbor indices including the point itself."""
    from scipy.spatial import cKDTree

    k = min(k + 1, len(points))
    _, idx = cKDTree(points).query(points, k=k)
    return np.asarray(idx).reshape(len(points), k)


def grow_regions(
    points: np.ndarray,
    normals: np.ndarray,
    curvature: np.ndarray,
    *,
    neighbors: int,
    smoothness_threshold: float,
    curvature_threshold: float,
    max_cluster_size: int,
) -> list[np.ndarray]:
    """Grow regions over the whole cloud, returning every region regardless of size."""
    n = len(points)
    if n == 0:
        return []

    table = _neighbor_table(points, neighbors)
    cos_threshold = math.cos(smoothness_threshold)
    labels = np.full(n, -1, dtype=np.int64)
    regions: list[np.ndarray] = []

    for seed in np.argsort(curvature, kind="stable"):
        if labels[seed] != -1:
            continue
        region_id = len(regions)
        labels[seed] = region_id
        members = [int(seed)]
        queue = deque([int(seed)])

        while queue and len(members) < max_cluster_size:
            current = queue.popleft()
            nbrs = table[current]
            nbrs = nbrs[(nbrs != current) & (labels[nbrs] == -1)]
            if len(nbrs) == 0:
                continue
            cos = np.abs(normals[nbrs] @ normals[current])
            for j in nbrs[cos >= cos_threshold]:
                labels[j] = region_id
                members.append(int(j))
                if curvature[j] < curvature_threshold:
                    queue.append(int(j))
                if len(members) >= max_cluster_size:
                    break

        regions.append(np.array(members, dtype=np.int64))
    return regions


def colorize_clusters(points: np.ndarray, clusters: ClusterSet) -> ColoredPointCloud:
    """All points white, then one distinct color per cluster."""
    colors = np.tile(np.array(UNCLUSTERED_COLOR, dtype=np.uint8), (len(points), 1))
    for i, members in enumerate(clusters):
        colors[members] = cluster_color_u8(i)
    return ColoredPointCloud(points.copy(), colors)


class RegionGrowingStep(BaseStep[SurfaceSample, Segmentation, RegionGrowingConfig]):
    name: ClassVar[str] = "region_growing"
    config_type: ClassVar = RegionGrowingConfig

    def validate_inputs(self, inputs: SurfaceSample) -> bool:
        if len(inputs) == 0:
            logger.error("Region growing received an empty cloud")
            return False
        return True

    def run(self, inputs: SurfaceSample) -> Segmentation:
        cfg = self.config
        regions = grow_regions(
            inputs.cloud.points,
            inputs.normals.normals,
            inputs.normals.curvature,
            neighbors=cfg.neighbors,
            smoothness_threshold=cfg.smoothness_threshold,
            curvature_threshold=cfg.curvature_threshold,
            max_cluster_size=cfg.max_cluster_size,
        )
        kept = [r for r in regions if len(r) >= cfg.min_cluster_size]
        clusters = ClusterSet(kept)
        logger.info(
            f"Region growing: {len(regions)} regions, {len(kept)} with >= "
            f"{cfg.min_cluster_size} points"
        )

        ignored = False
        if cfg.ignore_largest_cluster and len(clusters) >= 2:
            largest = clusters.largest_index()
            logger.info(f"Ignoring largest cluster ({clusters.sizes[largest]} points)")
            clusters = clusters.without(largest)
            ignored = True

        return Segmentation(
            clusters=clusters,
            colored_cloud=colorize_clusters(inputs.cloud.points, clusters),
            num_regions=len(regions),
            num_discarded=len(regions) - len(kept),
            ignored_largest=ignored,
        )
