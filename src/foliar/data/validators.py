from __future__ import annotations

import logging

import numpy as np

from foliar.errors import DomainMismatchError
from foliar.types import CoefficientEnsemble, CoefficientTable, SpectralMatrix
from foliar.wavelengths import describe_domain, missing_wavelengths, wavelength_equal

_logger = logging.getLogger(__name__)

REFLECTANCE_MAX_EPS = 1e-3


def _sample_finite(data: np.ndarray) -> np.ndarray:
    flat = np.asarray(data).ravel()
    return flat[np.isfinite(flat)]


def check_spectra_health(spectra: SpectralMatrix, *, logger: logging.Logger | None = None) -> None:
    """Perform lightweight sanity checks on reflectance values.

    Value-range problems and missing cells are logged rather than raised; rows
    with missing reflectance still flow through prediction as undefined outputs.
    """

    log = logger or _logger
    finite_values = _sample_finite(spectra.values)
    if finite_values.size == 0:
        log.warning("Spectral matrix contains no finite values", extra={"domain": spectra.domain})
        return

    min_val = float(finite_values.min())
    max_val = float(finite_values.max())
    if min_val < -REFLECTANCE_MAX_EPS or max_val > 1.0 + REFLECTANCE_MAX_EPS:
        log.warning(
            "Reflectance outside [0, 1]; check the declared units",
            extra={"min": min_val, "max": max_val},
        )

    incomplete = int(spectra.incomplete_rows().sum())
    if incomplete:
        log.warning(
            "%d of %d spectra have missing reflectance values",
            incomplete,
            spectra.n_samples,
            extra={"domain": spectra.domain},
        )


def check_model_coverage(spectra: SpectralMatrix, model: CoefficientTable | CoefficientEnsemble) -> None:
    """Fail fast when ``spectra`` lacks wavelengths the model needs."""

    missing = missing_wavelengths(model.wavelengths, spectra.wavelengths)
    if missing.size:
        msg = (
            f"Model requires {model.domain} but spectra cover {spectra.domain}; "
            f"{missing.size} wavelengths missing"
        )
        raise DomainMismatchError(msg)


def check_ensemble_domain(model: CoefficientTable, ensemble: CoefficientEnsemble) -> bool:
    """Return whether model and ensemble share a domain, logging when they do not."""

    same = wavelength_equal(model.wavelengths, ensemble.wavelengths)
    if not same:
        _logger.warning(
            "Primary model covers %s but jackknife ensemble covers %s",
            model.domain,
            describe_domain(ensemble.wavelengths),
        )
    return same
