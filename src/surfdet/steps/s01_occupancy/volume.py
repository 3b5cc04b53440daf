"""Step 01: Sparse occupancy volume fused from repeated point-cloud insertions.

Octomap-style log-odds bookkeeping restricted to hits: every insertion can only
raise the occupancy of the voxels it touches, nothing is carved out as free
space, and the map only shrinks on ``reset()``.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from surfdet.core.contracts import PointCloud
from .config import OccupancyConfig

logger = logging.getLogger(__name__)


def _logit(p: float) -> float:
    return math.log(p / (1.0 - p))


def _probability(log_odds: float) -> float:
    return 1.0 - 1.0 / (1.0 + math.exp(log_odds))


class OccupancyVolume:
    """Sparse voxel map of occupancy log-odds keyed by integer voxel index."""

    def __init__(self, config: OccupancyConfig | None = None):
        self.config = config or OccupancyConfig()
        self._hit = _logit(self.config.prob_hit)
        self._max = _logit(self.config.clamp_max)
        self._log_odds: dict[tuple[int, int, int], float] = {}

    @property
    def resolution(self) -> float:
        return self.config.resolution

    @property
    def num_voxels(self) -> int:
        return len(self._log_odds)

    def _keys(self, points: np.ndarray) -> np.ndarray:
        return np.floor(points / self.resolution).astype(np.int64)

    def insert(self, cloud: PointCloud) -> int:
        """Fuse a cloud already expressed in the map frame.

        Each touched voxel receives one hit per insertion, however many points
        fall inside it. Returns the number of voxels touched.
        """
        finite = cloud.finite()
        if finite.is_empty:
            return 0
        keys = np.unique(self._keys(finite.points), axis=0)
        for key in map(tuple, keys.tolist()):
            current = self._log_odds.get(key, 0.0)
            self._log_odds[key] = min(current + self._hit, self._max)
        logger.debug(f"Inserted {len(finite)} points into {len(keys)} voxels ({self.num_voxels} total)")
        return len(keys)

    def occupancy(self, point) -> float:
        """Occupancy probability of the voxel containing ``point`` (0.5 when unseen)."""
        key = tuple(self._keys(np.asarray(point, dtype=np.float64).reshape(1, 3))[0].tolist())
        return _probability(self._log_odds.get(key, 0.0))

    def extract(self, threshold: float | None = None) -> PointCloud:
        """Centers of all voxels whose occupancy is at or above ``threshold``."""
        if threshold is None:
            threshold = self.config.occupancy_threshold
        if not self._log_odds:
            return PointCloud()
        keys = np.array(sorted(self._log_odds), dtype=np.int64)
        probs = np.array([_probability(self._log_odds[tuple(k)]) for k in keys.tolist()])
        occupied = keys[probs >= threshold]
        centers = (occupied.astype(np.float64) + 0.5) * self.resolution
        logger.info(
            f"Extracted {len(centers)}/{len(keys)} voxels at occupancy >= {threshold:.3f}"
        )
        return PointCloud(centers)

    def reset(self) -> None:
        self._log_odds.clear()
