"""Uncertainty estimation from jackknife coefficient ensembles."""

from .jackknife import (
    DEFAULT_INTERVAL,
    EnsemblePrediction,
    JackknifeEstimator,
    estimate,
    fold_predictions,
    summarize_folds,
)

__all__ = [
    "DEFAULT_INTERVAL",
    "EnsemblePrediction",
    "JackknifeEstimator",
    "estimate",
    "fold_predictions",
    "summarize_folds",
]
