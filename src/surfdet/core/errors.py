"""Error taxonomy for the surface-detection pipeline.

Stages raise these; ``SurfaceDetection`` turns them into a boolean status
plus log output so that nothing escapes its public methods.
"""

from __future__ import annotations


class SurfaceDetectionError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(SurfaceDetectionError):
    """A parameter is missing or malformed. Nothing from the load is applied."""


class InsufficientDataError(SurfaceDetectionError):
    """A stage needs more points or neighbours than the input provides."""


class GeometricFailure(SurfaceDetectionError):
    """A single surface patch could not be reconstructed."""


class AcquisitionFailure(SurfaceDetectionError):
    """A scan was expected but no point cloud arrived."""
