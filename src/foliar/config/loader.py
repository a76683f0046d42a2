"""YAML loader for :class:`~foliar.config.core.RunConfig`.

Relative input and output paths are resolved against the directory holding the
YAML file, so a run configuration can travel together with its data.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from foliar.utils.io import StrPath
from foliar.utils.paths import resolve_path

from .core import RunConfig


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Expected mapping in {path}, found {type(data)}")
    return dict(data)


def _resolve_paths(config: RunConfig, base: Path) -> RunConfig:
    inputs = config.inputs.model_copy(
        update={
            name: resolve_path(value, base)
            for name, value in config.inputs.model_dump().items()
            if value is not None
        }
    )
    output = config.output.model_copy(update={"directory": resolve_path(config.output.directory, base)})
    return config.model_copy(update={"inputs": inputs, "output": output})


def load_run_config(path: StrPath) -> RunConfig:
    """Load and validate a run configuration from ``path``."""

    cfg_path = Path(path).expanduser().resolve()
    raw = _load_yaml(cfg_path)
    return _resolve_paths(RunConfig.model_validate(raw), cfg_path.parent)


def run_config_from_mapping(data: Mapping[str, Any] | None, base: StrPath | None = None) -> RunConfig:
    """Build a configuration from an in-memory mapping (e.g. tests or notebooks)."""

    config = RunConfig.model_validate(dict(data or {}))
    if base is None:
        return config
    return _resolve_paths(config, Path(base))
