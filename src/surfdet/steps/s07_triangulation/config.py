"""Configuration for Step 07: Greedy projection triangulation."""

import math

from pydantic import BaseModel, Field, model_validator


class TriangulationConfig(BaseModel):
    search_radius: float = Field(
        0.01, gt=0, description="Neighborhood radius, the longest edge leaving a vertex (meters)"
    )
    mu: float = Field(2.5, gt=0, description="Edge length multiplier over nearest-neighbor distance")
    max_nearest_neighbors: int = Field(100, ge=2, description="Neighbors a vertex may connect to")
    max_surface_angle: float = Field(
        math.pi / 4, gt=0, description="Max angle between vertex normals of a triangle (radians)"
    )
    min_angle: float = Field(math.pi / 18, ge=0, description="Min interior angle (radians)")
    max_angle: float = Field(2 * math.pi / 3, le=math.pi, description="Max interior angle (radians)")
    normal_consistency: bool = Field(False, description="Enforce one normal orientation per mesh")

    @model_validator(mode="after")
    def _check_angle_bounds(self):
        if self.min_angle >= self.max_angle:
            raise ValueError("min_angle must be smaller than max_angle")
        return self
