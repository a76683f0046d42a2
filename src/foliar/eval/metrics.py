"""Agreement statistics between predicted and observed trait values."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from foliar.errors import InsufficientDataError
from foliar.types import FitSummary

logger = logging.getLogger(__name__)

__all__ = ["residuals", "paired_mask", "rmse", "r_squared", "evaluate"]


def residuals(predicted: ArrayLike, observed: ArrayLike) -> NDArray[np.float64]:
    """Return ``predicted - observed``; missing on either side stays ``NaN``."""

    pred = np.asarray(predicted, dtype=np.float64)
    obs = np.asarray(observed, dtype=np.float64)
    if pred.shape != obs.shape:
        raise ValueError(f"Predicted shape {pred.shape} does not match observed shape {obs.shape}")
    return pred - obs


def paired_mask(predicted: ArrayLike, observed: ArrayLike) -> NDArray[np.bool_]:
    """Rows usable for fit statistics: both values present and finite."""

    return np.isfinite(np.asarray(predicted, dtype=np.float64)) & np.isfinite(
        np.asarray(observed, dtype=np.float64)
    )


def _paired(predicted: ArrayLike, observed: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    pred = np.asarray(predicted, dtype=np.float64)
    obs = np.asarray(observed, dtype=np.float64)
    if pred.shape != obs.shape or pred.ndim != 1:
        msg = f"Expected matching 1-D arrays, got {pred.shape} and {obs.shape}"
        raise ValueError(msg)
    mask = paired_mask(pred, obs)
    return pred[mask], obs[mask]


def rmse(predicted: ArrayLike, observed: ArrayLike) -> float:
    """Root mean squared residual over rows with an observed value."""

    pred, obs = _paired(predicted, observed)
    if pred.size == 0:
        raise InsufficientDataError("RMSE needs at least 1 row with an observed value, got 0")
    return float(np.sqrt(np.mean((pred - obs) ** 2)))


def _regression(pred: np.ndarray, obs: np.ndarray):
    if pred.size < 2:
        msg = f"R-squared needs at least 2 rows with observed values, got {pred.size}"
        raise InsufficientDataError(msg)
    if np.ptp(obs) == 0.0:
        msg = f"R-squared is undefined: all {obs.size} observed values are identical"
        raise InsufficientDataError(msg)
    # predicted ~ observed, slope and intercept both fitted
    return stats.linregress(obs, pred)


def r_squared(predicted: ArrayLike, observed: ArrayLike) -> float:
    """Coefficient of determination of the OLS fit of predicted on observed."""

    pred, obs = _paired(predicted, observed)
    return float(_regression(pred, obs).rvalue ** 2)


def evaluate(predicted: ArrayLike, observed: ArrayLike) -> FitSummary:
    """Compute RMSE and R-squared over rows with both a prediction and an observation.

    Raises
    ------
    InsufficientDataError
        If fewer than two rows qualify, or the observed values have no spread.
    """

    pred, obs = _paired(predicted, observed)
    fit = _regression(pred, obs)
    summary = FitSummary(
        rmse=float(np.sqrt(np.mean((pred - obs) ** 2))),
        r_squared=float(fit.rvalue**2),
        n=int(pred.size),
        slope=float(fit.slope),
        intercept=float(fit.intercept),
    )
    excluded = int(np.asarray(observed).size - pred.size)
    if excluded:
        logger.info("Excluded %d rows without an observation or prediction from fit statistics", excluded)
    return summary
