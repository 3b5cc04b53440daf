"""Result contracts of the surface-detection orchestrator."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ResultsSummary(BaseModel):
    """Counters describing the accumulated input and the last committed run."""

    acquired_clouds: int = Field(0, description="Clouds passed to add_cloud")
    acquired_points: int = Field(0, description="Finite points passed to add_cloud")
    fused_points: int = Field(0, description="Points in the working cloud of the last run")
    points_processed: int = Field(0, description="Points reaching segmentation in the last run")
    clusters_found: int = Field(0, description="Surface clusters kept by region growing")
    meshes_built: int = Field(0, description="Clusters successfully triangulated")
    triangulation_failures: int = Field(0, description="Clusters whose mesh was skipped")
    last_run_succeeded: Optional[bool] = Field(None, description="None until find_surfaces runs")
    last_error: Optional[str] = None

    def describe(self) -> str:
        lines = [
            f"Acquired {self.acquired_clouds} clouds ({self.acquired_points} points)",
            f"Fused cloud: {self.fused_points} points, processed: {self.points_processed} points",
            f"Clusters found: {self.clusters_found}",
            f"Meshes built: {self.meshes_built} "
            f"(triangulation failures: {self.triangulation_failures})",
        ]
        if self.last_run_succeeded is False and self.last_error:
            lines.append(f"Last run failed: {self.last_error}")
        return "\n".join(lines)
