"""Configuration for Step 03: Statistical outlier removal."""

from pydantic import BaseModel, Field


class StatisticalFilterConfig(BaseModel):
    mean_k: int = Field(50, ge=1, description="Neighbors used for the mean distance")
    stdev_threshold: float = Field(1.0, gt=0, description="Std-dev multiplier for the distance cutoff")
