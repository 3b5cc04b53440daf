"""Parameter store access: YAML files with slash-separated namespaces."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ParamSource = Path | str | Mapping[str, Any]


def load_param_store(path: Path | str) -> dict[str, Any]:
    """Load a YAML parameter file into a nested dict."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read parameter file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {path}: {e}") from e
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Parameter file {path} must contain a mapping")
    return dict(raw)


def resolve_namespace(store: Mapping[str, Any], namespace: str = "") -> dict[str, Any]:
    """Walk ``store`` down a namespace like ``/robot/surface_detection``.

    Leading ``~`` and ``/`` are ignored; an empty namespace is the root.
    """
    node: Any = store
    parts = [p for p in namespace.lstrip("~").split("/") if p]
    for depth, part in enumerate(parts):
        if not isinstance(node, Mapping) or part not in node:
            missing = "/".join(parts[: depth + 1])
            raise ConfigurationError(f"Namespace '{missing}' not found in parameter store")
        node = node[part]
    if node is None:
        return {}
    if not isinstance(node, Mapping):
        raise ConfigurationError(f"Namespace '{namespace}' does not hold a parameter mapping")
    return dict(node)


def load_config(
    source: ParamSource,
    config_class: type[ModelT],
    namespace: str = "",
) -> ModelT:
    """Load one namespace of a parameter source into its Pydantic model.

    ``source`` is a YAML path or an already-loaded mapping. All-or-nothing: a
    single bad key fails the whole load.
    """
    store = source if isinstance(source, Mapping) else load_param_store(source)
    raw = resolve_namespace(store, namespace)
    try:
        return config_class(**raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid parameters for {config_class.__name__} in namespace '{namespace or '/'}': {e}"
        ) from e
