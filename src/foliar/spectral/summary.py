"""Per-wavelength summary statistics across a set of spectra."""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from foliar.types import SpectralMatrix

DEFAULT_PROBS: tuple[float, ...] = (0.0, 0.025, 0.05, 0.5, 0.95, 0.975, 1.0)


@dataclass(frozen=True)
class SpectralSummary:
    """Mean spectrum and quantile envelopes; ``quantiles`` is ``(len(probs), C)``."""

    wavelengths: NDArray[np.int64]
    mean: NDArray[np.float64]
    probs: tuple[float, ...]
    quantiles: NDArray[np.float64]
    n_samples: int

    def quantile(self, prob: float) -> NDArray[np.float64]:
        try:
            idx = self.probs.index(prob)
        except ValueError:
            raise KeyError(f"Quantile {prob} not computed; available: {self.probs}") from None
        return self.quantiles[idx]

    def as_columns(self) -> dict[str, NDArray]:
        columns: dict[str, NDArray] = {"wavelength": self.wavelengths, "mean": self.mean}
        for prob, row in zip(self.probs, self.quantiles):
            columns[f"q{prob * 100:g}"] = row
        return columns


def summarize_spectra(
    spectra: SpectralMatrix, probs: Sequence[float] = DEFAULT_PROBS
) -> SpectralSummary:
    """Column means and quantiles, ignoring missing reflectance.

    Wavelengths with no finite values at all come back as ``NaN``.
    """

    probs_t = tuple(float(p) for p in probs)
    if any(not 0.0 <= p <= 1.0 for p in probs_t):
        raise ValueError(f"Quantile probabilities must lie in [0, 1], got {probs_t}")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        mean = np.nanmean(spectra.values, axis=0)
        quantiles = np.nanquantile(spectra.values, probs_t, axis=0, method="linear")
    return SpectralSummary(
        wavelengths=spectra.wavelengths,
        mean=np.asarray(mean, dtype=np.float64),
        probs=probs_t,
        quantiles=np.atleast_2d(np.asarray(quantiles, dtype=np.float64)),
        n_samples=spectra.n_samples,
    )
