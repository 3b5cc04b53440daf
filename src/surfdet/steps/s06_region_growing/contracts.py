"""I/O contracts for Step 06: Region growing segmentation."""

from __future__ import annotations

from dataclasses import dataclass

from surfdet.core.contracts import ClusterSet, ColoredPointCloud


@dataclass
class Segmentation:
    clusters: ClusterSet
    colored_cloud: ColoredPointCloud
    num_regions: int = 0
    num_discarded: int = 0
    ignored_largest: bool = False
