"""surfdet core: base step, shared contracts, errors, parameter loading."""

from .step_base import BaseStep
from .contracts import (
    ClusterSet,
    ColoredPointCloud,
    Pose,
    Mesh,
    NormalField,
    PointCloud,
    SurfaceMarker,
    SurfaceSample,
)
from .errors import (
    AcquisitionFailure,
    ConfigurationError,
    GeometricFailure,
    InsufficientDataError,
    SurfaceDetectionError,
)
from .params import load_config, load_param_store, resolve_namespace
from .logging import setup_logging

__all__ = [
    "BaseStep",
    "ClusterSet",
    "ColoredPointCloud",
    "Pose",
    "Mesh",
    "NormalField",
    "PointCloud",
    "SurfaceMarker",
    "SurfaceSample",
    "AcquisitionFailure",
    "ConfigurationError",
    "GeometricFailure",
    "InsufficientDataError",
    "SurfaceDetectionError",
    "load_config",
    "load_param_store",
    "resolve_namespace",
    "setup_logging",
]
