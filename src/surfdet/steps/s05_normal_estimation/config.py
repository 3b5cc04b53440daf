"""Configuration for Step 05: Normal estimation / MLS smoothing."""

from pydantic import BaseModel, Field


class NormalEstimationConfig(BaseModel):
    k_search: int = Field(50, ge=3, description="Neighbors per local plane fit")
    viewpoint: list[float] = Field(
        default_factory=lambda: [0.0, 0.0, 0.0], min_length=3, max_length=3,
        description="Normals are flipped to face this point",
    )


class MlsSmoothingConfig(BaseModel):
    search_radius: float = Field(0.01, gt=0, description="Local surface fit radius (meters)")
    upsampling_radius: float = Field(
        0.01, ge=0, description="Radius around each point for added samples (0 = no upsampling)"
    )
    point_density: int = Field(
        40, ge=0, description="Target number of points within search_radius when upsampling"
    )
    polynomial_order: int = Field(2, ge=1, le=2, description="Local polynomial order")
    k_search: int = Field(50, ge=3, description="Neighbors for curvature on the smoothed cloud")
    viewpoint: list[float] = Field(
        default_factory=lambda: [0.0, 0.0, 0.0], min_length=3, max_length=3,
        description="Normals are flipped to face this point",
    )
    seed: int = Field(0, description="RNG seed for upsampling")
