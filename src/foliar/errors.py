"""Exception hierarchy shared by the prediction engine and its loaders."""

from __future__ import annotations

__all__ = [
    "FoliarError",
    "FormatError",
    "DomainMismatchError",
    "InsufficientEnsembleError",
    "InsufficientDataError",
]


class FoliarError(ValueError):
    """Base class for all input and computation errors raised by :mod:`foliar`."""


class FormatError(FoliarError):
    """Malformed or incomplete coefficient, spectral or metadata table."""


class DomainMismatchError(FoliarError):
    """Spectral columns do not cover the wavelength domain a model requires."""


class InsufficientEnsembleError(FoliarError):
    """Ensemble statistics requested with fewer than two folds."""


class InsufficientDataError(FoliarError):
    """Fit statistics requested with fewer than two usable observations."""
