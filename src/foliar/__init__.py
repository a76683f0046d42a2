"""foliar: foliar trait prediction from leaf reflectance with jackknife PLSR uncertainty.

The engine applies a pre-fit PLSR coefficient table to reflectance spectra,
derives per-sample intervals from an ensemble of jackknife coefficient sets,
and scores the estimates against observed values.
"""

from __future__ import annotations

import importlib
from typing import Any

from .errors import (
    DomainMismatchError,
    FoliarError,
    FormatError,
    InsufficientDataError,
    InsufficientEnsembleError,
)
from .types import (
    CoefficientEnsemble,
    CoefficientTable,
    FitSummary,
    PredictionResult,
    SampleRecord,
    SpectralDataset,
    SpectralMatrix,
)
from .version import __version__

__all__ = [
    "__version__",
    "CoefficientEnsemble",
    "CoefficientTable",
    "DomainMismatchError",
    "FitSummary",
    "FoliarError",
    "FormatError",
    "InsufficientDataError",
    "InsufficientEnsembleError",
    "PredictionResult",
    "SampleRecord",
    "SpectralDataset",
    "SpectralMatrix",
    "config",
    "data",
    "eval",
    "io",
    "pipeline",
    "predict",
    "spectral",
    "uncertainty",
    "utils",
]

_SUBMODULES = {"config", "data", "eval", "io", "pipeline", "predict", "spectral", "uncertainty", "utils"}


def __getattr__(name: str) -> Any:
    if name in _SUBMODULES:
        module = importlib.import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
