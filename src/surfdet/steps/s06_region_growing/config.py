"""Configuration for Step 06: Region growing segmentation."""

import math

from pydantic import BaseModel, Field


class RegionGrowingConfig(BaseModel):
    min_cluster_size: int = Field(100, ge=1, description="Regions smaller than this are discarded")
    max_cluster_size: int = Field(100000, ge=1, description="Regions stop growing at this size")
    neighbors: int = Field(50, ge=1, description="Nearest neighbors examined per seed")
    smoothness_threshold: float = Field(
        math.radians(7.0), gt=0, description="Max normal deviation from the seed (radians)"
    )
    curvature_threshold: float = Field(
        1.0, description="Points below this curvature keep growing the region"
    )
    ignore_largest_cluster: bool = Field(False, description="Drop the biggest region (background)")
