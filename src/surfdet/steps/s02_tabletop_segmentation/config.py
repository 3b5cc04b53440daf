"""Configuration for Step 02: Tabletop (support plane) segmentation."""

from typing import Optional

from pydantic import BaseModel, Field


class TabletopSegmentationConfig(BaseModel):
    distance_threshold: float = Field(0.005, gt=0, description="RANSAC inlier distance (meters)")
    ransac_n: int = Field(3, ge=3, description="Points sampled per RANSAC hypothesis")
    num_iterations: int = Field(1000, ge=1, description="RANSAC iterations")
    seed: Optional[int] = Field(0, description="Open3D RNG seed (None = nondeterministic)")
