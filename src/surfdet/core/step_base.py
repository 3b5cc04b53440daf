"""Base class for all pipeline stages.

Every stage holds a Pydantic config slice and turns one input artifact into
one output artifact. The orchestrator builds stages once per configuration and
calls ``execute`` in sequence.
"""

from __future__ import annotations

import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar, ClassVar

from pydantic import BaseModel

from .errors import InsufficientDataError

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")
ConfigT = TypeVar("ConfigT", bound=BaseModel)

logger = logging.getLogger(__name__)


class BaseStep(ABC, Generic[InputT, OutputT, ConfigT]):
    """Abstract base for pipeline stages.

    Subclasses must:
    1. Set class variables: name, config_type
    2. Implement run() and validate_inputs()

    Example:
        class VoxelDownsamplingStep(BaseStep[PointCloud, PointCloud, VoxelDownsamplingConfig]):
            name = "voxel_downsampling"
            config_type = VoxelDownsamplingConfig

            def run(self, inputs: PointCloud) -> PointCloud: ...
            def validate_inputs(self, inputs: PointCloud) -> bool: ...
    """

    name: ClassVar[str] = ""
    config_type: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT):
        self.config = config

    @abstractmethod
    def run(self, inputs: InputT) -> OutputT:
        """Execute this stage. Returns its output artifact."""
        ...

    @abstractmethod
    def validate_inputs(self, inputs: InputT) -> bool:
        """Check that the input carries enough data for this stage."""
        ...

    def execute(self, inputs: InputT) -> OutputT:
        """Run with logging, timing, and validation."""
        step_name = self.name or self.__class__.__name__
        logger.debug(f"[{step_name}] Validating inputs...")

        if not self.validate_inputs(inputs):
            raise InsufficientDataError(f"[{step_name}] Input validation failed")

        logger.debug(f"[{step_name}] Starting...")
        t0 = time.time()
        result = self.run(inputs)
        elapsed = time.time() - t0
        logger.info(f"[{step_name}] Done in {elapsed:.3f}s")
        return result

    @classmethod
    def get_config_schema(cls) -> dict[str, Any]:
        """Return JSON schema for config."""
        return cls.config_type.model_json_schema()
