"""Point prediction: apply one linear coefficient table to a spectral matrix."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from foliar.types import CoefficientTable, SpectralMatrix

logger = logging.getLogger(__name__)

__all__ = ["BackTransform", "apply_back_transform", "linear_response", "predict"]


class BackTransform(str, Enum):
    """Inverse of the response transform a model was trained on."""

    NONE = "none"
    SQUARE = "square"


_BACK_TRANSFORMS: dict[BackTransform, Callable[[np.ndarray], np.ndarray]] = {
    BackTransform.NONE: lambda values: values,
    BackTransform.SQUARE: np.square,
}


def apply_back_transform(
    values: NDArray[np.float64], transform: BackTransform | str = BackTransform.NONE
) -> NDArray[np.float64]:
    """Map predictions from model space back to trait units, element-wise.

    ``NaN`` entries stay ``NaN``; the transform never changes the array shape.
    """

    kind = BackTransform(transform)
    return np.asarray(_BACK_TRANSFORMS[kind](np.asarray(values, dtype=np.float64)))


def linear_response(
    reflectance: NDArray[np.float64],
    coefficients: NDArray[np.float64],
    intercepts: NDArray[np.float64] | float,
) -> NDArray[np.float64]:
    """Evaluate ``reflectance @ coefficients + intercepts`` with row-wise missingness.

    ``coefficients`` may be a ``(C,)`` vector or a ``(C, K)`` matrix with one
    column per model. Rows containing any non-finite reflectance yield ``NaN``
    for every model instead of being dropped.
    """

    block = np.asarray(reflectance, dtype=np.float64)
    incomplete = ~np.all(np.isfinite(block), axis=1)
    filled = np.where(np.isfinite(block), block, 0.0)
    out = filled @ np.asarray(coefficients, dtype=np.float64) + intercepts
    out = np.asarray(out, dtype=np.float64)
    out[incomplete, ...] = np.nan
    return out


def predict(spectra: SpectralMatrix, model: CoefficientTable) -> NDArray[np.float64]:
    """Return one prediction per spectral row for ``model``.

    The spectral columns are restricted to exactly the model's wavelength
    domain (same order) before the dot product, so the output length always
    equals ``spectra.n_samples``.

    Raises
    ------
    DomainMismatchError
        If the spectra do not cover every wavelength the model requires.
    """

    block = spectra.select(model.wavelengths)
    estimates = linear_response(block, model.coefficients, model.intercept)
    n_missing = int(np.isnan(estimates).sum())
    if n_missing:
        logger.warning(
            "%d of %d rows have missing reflectance; predictions left undefined",
            n_missing,
            spectra.n_samples,
            extra={"domain": model.domain},
        )
    return estimates
