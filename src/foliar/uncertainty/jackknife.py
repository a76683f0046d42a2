"""Jackknife ensemble wrappers for prediction uncertainty."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from foliar.errors import InsufficientEnsembleError
from foliar.predict import BackTransform, apply_back_transform, linear_response
from foliar.types import CoefficientEnsemble, SpectralMatrix

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL: tuple[float, float] = (0.025, 0.975)


@dataclass(frozen=True)
class EnsemblePrediction:
    """Output container for jackknife ensemble predictions.

    ``fold_predictions`` is ``(R, K)``; the remaining arrays are ``(R,)``.
    """

    fold_predictions: NDArray[np.float64]
    mean: NDArray[np.float64]
    std_dev: NDArray[np.float64]
    lower: NDArray[np.float64]
    upper: NDArray[np.float64]
    interval: tuple[float, float] = DEFAULT_INTERVAL

    @property
    def n_folds(self) -> int:
        return int(self.fold_predictions.shape[1])


def fold_predictions(spectra: SpectralMatrix, ensemble: CoefficientEnsemble) -> NDArray[np.float64]:
    """Apply every fold to ``spectra`` in one batch, returning an ``(R, K)`` matrix."""

    block = spectra.select(ensemble.wavelengths)
    return linear_response(block, ensemble.coefficients.T, ensemble.intercepts)


def summarize_folds(
    predictions: NDArray[np.float64],
    interval: tuple[float, float] = DEFAULT_INTERVAL,
) -> EnsemblePrediction:
    """Reduce an ``(R, K)`` prediction matrix to per-row statistics.

    The standard deviation uses the ``K - 1`` denominator and the bounds are
    empirical quantiles with linear interpolation between order statistics.
    Rows containing ``NaN`` produce ``NaN`` statistics.
    """

    preds = np.asarray(predictions, dtype=np.float64)
    if preds.ndim != 2:
        raise ValueError(f"Fold predictions must be 2-D (samples x folds), got {preds.shape}")
    n_folds = preds.shape[1]
    if n_folds < 2:
        msg = f"Jackknife statistics need at least 2 folds, got {n_folds}"
        raise InsufficientEnsembleError(msg)
    lo, hi = interval
    if not 0.0 <= lo < hi <= 1.0:
        raise ValueError(f"Invalid interval probabilities: {interval}")

    # identical fold predictions must give an exact zero spread
    constant = np.ptp(preds, axis=1) == 0.0
    mean = np.where(constant, preds[:, 0], preds.mean(axis=1))
    std_dev = np.where(constant, 0.0, preds.std(axis=1, ddof=1))
    bounds = np.quantile(preds, [lo, hi], axis=1, method="linear")
    return EnsemblePrediction(
        fold_predictions=preds,
        mean=mean,
        std_dev=std_dev,
        lower=bounds[0],
        upper=bounds[1],
        interval=(float(lo), float(hi)),
    )


class JackknifeEstimator:
    """Derive per-sample uncertainty from precomputed jackknife coefficient sets."""

    def __init__(
        self,
        ensemble: CoefficientEnsemble,
        *,
        interval: tuple[float, float] = DEFAULT_INTERVAL,
        back_transform: BackTransform | str = BackTransform.NONE,
    ) -> None:
        if len(ensemble) < 2:
            msg = f"Jackknife ensemble must contain at least 2 folds, got {len(ensemble)}"
            raise InsufficientEnsembleError(msg)
        self.ensemble = ensemble
        self.interval = interval
        self.back_transform = BackTransform(back_transform)

    def estimate(self, spectra: SpectralMatrix) -> EnsemblePrediction:
        preds = fold_predictions(spectra, self.ensemble)
        preds = apply_back_transform(preds, self.back_transform)
        logger.debug(
            "Computed %d x %d jackknife predictions", preds.shape[0], preds.shape[1]
        )
        return summarize_folds(preds, self.interval)


def estimate(
    spectra: SpectralMatrix,
    ensemble: CoefficientEnsemble,
    *,
    interval: tuple[float, float] = DEFAULT_INTERVAL,
) -> EnsemblePrediction:
    """Convenience wrapper around :class:`JackknifeEstimator` without a back-transform."""

    return JackknifeEstimator(ensemble, interval=interval).estimate(spectra)
