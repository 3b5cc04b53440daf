"""Configuration for Step 04: Voxel-grid downsampling."""

from pydantic import BaseModel, Field


class VoxelDownsamplingConfig(BaseModel):
    leaf_size: float = Field(0.01, description="Voxel edge length in meters (<= 0 disables)")
