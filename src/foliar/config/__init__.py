from .core import (
    InputConfig,
    MetadataColumns,
    OutputConfig,
    PredictionSettings,
    RunConfig,
    WavelengthWindow,
)
from .loader import load_run_config, run_config_from_mapping

__all__ = [
    "InputConfig",
    "MetadataColumns",
    "OutputConfig",
    "PredictionSettings",
    "RunConfig",
    "WavelengthWindow",
    "load_run_config",
    "run_config_from_mapping",
]
