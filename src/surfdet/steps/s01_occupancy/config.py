"""Configuration for Step 01: Occupancy accumulation."""

from pydantic import BaseModel, Field


class OccupancyConfig(BaseModel):
    resolution: float = Field(0.01, gt=0, description="Voxel edge length (meters)")
    occupancy_threshold: float = Field(
        0.1, ge=0, le=1, description="Min occupancy probability for a voxel to be extracted"
    )
    prob_hit: float = Field(0.7, gt=0.5, lt=1, description="Occupancy probability of one observation")
    clamp_max: float = Field(0.971, gt=0.5, lt=1, description="Upper occupancy clamp")
