"""Deterministic per-cluster colors."""

from __future__ import annotations

import colorsys

import numpy as np

UNCLUSTERED_COLOR = (255, 255, 255)

# Distinct colors for cluster visualization (HSV-derived, good contrast)
_CLUSTER_COLORS = [
    [0.90, 0.30, 0.30],  # red
    [0.30, 0.70, 0.90],  # sky blue
    [0.40, 0.85, 0.35],  # green
    [0.95, 0.70, 0.20],  # orange
    [0.60, 0.35, 0.85],  # purple
    [0.85, 0.85, 0.25],  # yellow
    [0.30, 0.85, 0.75],  # teal
    [0.90, 0.45, 0.70],  # pink
]

_GOLDEN_RATIO = 0.618033988749895


def cluster_color(index: int) -> tuple[float, float, float]:
    """RGB in [0, 1] for cluster ``index``; palette first, then golden-ratio hues."""
    if index < len(_CLUSTER_COLORS):
        r, g, b = _CLUSTER_COLORS[index]
        return r, g, b
    hue = ((index - len(_CLUSTER_COLORS)) * _GOLDEN_RATIO + 0.05) % 1.0
    return colorsys.hsv_to_rgb(hue, 0.75, 0.9)


def cluster_color_u8(index: int) -> np.ndarray:
    return np.round(np.asarray(cluster_color(index)) * 255).astype(np.uint8)
