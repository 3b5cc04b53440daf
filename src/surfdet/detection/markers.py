"""Mesh to renderable marker conversion."""

from __future__ import annotations

from typing import Sequence

from surfdet.core.contracts import Mesh, SurfaceMarker


def mesh_to_marker(
    mesh: Mesh,
    frame_id: str,
    marker_id: int = 0,
    color: Sequence[float] = (0.6, 0.6, 0.6),
    alpha: float = 1.0,
    ns: str = "surfaces",
) -> SurfaceMarker:
    """Triangle-list marker at identity pose in ``frame_id``.

    Each triangle contributes its three corners, in winding order, to
    ``points``.
    """
    corners = mesh.vertices[mesh.triangles].reshape(-1, 3)
    r, g, b = (float(c) for c in color[:3])
    return SurfaceMarker(
        frame_id=frame_id,
        ns=ns,
        id=marker_id,
        color=[r, g, b, float(alpha)],
        points=corners.tolist(),
    )
