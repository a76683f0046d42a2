"""Typed containers for coefficient tables, spectra, sample metadata and results."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from foliar.errors import DomainMismatchError, FormatError
from foliar.wavelengths import (
    check_contiguous,
    check_monotonic,
    describe_domain,
    missing_wavelengths,
    wavelength_range,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ReflectanceUnits",
    "CoefficientTable",
    "CoefficientEnsemble",
    "SpectralMatrix",
    "SampleRecord",
    "SpectralDataset",
    "PredictionResult",
    "FitSummary",
]


class ReflectanceUnits(str, Enum):
    FRACTION = "fraction"
    PERCENT = "percent"


def _frozen_array(values: Any, dtype: Any) -> np.ndarray:
    arr = np.array(values, dtype=dtype, copy=True)
    arr.setflags(write=False)
    return arr


def _as_float_array(values: Any, what: str) -> np.ndarray:
    try:
        return _frozen_array(values, np.float64)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"{what} contains non-numeric values: {exc}") from exc


@dataclass(frozen=True)
class CoefficientTable:
    """A linear model: one coefficient per wavelength plus an intercept."""

    wavelengths: NDArray[np.int64]
    coefficients: NDArray[np.float64]
    intercept: float

    def __post_init__(self) -> None:
        wavelengths = _frozen_array(self.wavelengths, np.int64)
        coefficients = _as_float_array(self.coefficients, "Coefficient vector")
        check_monotonic(wavelengths, what="Model wavelengths")
        if coefficients.ndim != 1 or coefficients.shape != wavelengths.shape:
            msg = (
                f"Coefficient vector shape {coefficients.shape} does not match "
                f"wavelength domain shape {wavelengths.shape}"
            )
            raise FormatError(msg)
        if not np.all(np.isfinite(coefficients)):
            raise FormatError("Coefficient vector contains missing or non-finite values")
        intercept = float(self.intercept)
        if not np.isfinite(intercept):
            raise FormatError(f"Intercept must be finite, got {self.intercept!r}")
        object.__setattr__(self, "wavelengths", wavelengths)
        object.__setattr__(self, "coefficients", coefficients)
        object.__setattr__(self, "intercept", intercept)

    @property
    def n_bands(self) -> int:
        return int(self.wavelengths.size)

    @property
    def domain(self) -> str:
        return describe_domain(self.wavelengths)


@dataclass(frozen=True)
class CoefficientEnsemble:
    """Jackknife folds sharing one wavelength domain.

    ``coefficients`` is a ``(K, C)`` matrix with one row per fold and
    ``intercepts`` the matching ``(K,)`` vector.
    """

    wavelengths: NDArray[np.int64]
    intercepts: NDArray[np.float64]
    coefficients: NDArray[np.float64]
    fold_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        wavelengths = _frozen_array(self.wavelengths, np.int64)
        intercepts = _as_float_array(self.intercepts, "Ensemble intercepts")
        coefficients = _as_float_array(self.coefficients, "Ensemble coefficients")
        check_monotonic(wavelengths, what="Ensemble wavelengths")

        if intercepts.ndim != 1 or intercepts.size == 0:
            raise FormatError(f"Ensemble needs a 1-D, non-empty intercept vector, got {intercepts.shape}")
        expected = (intercepts.size, wavelengths.size)
        if coefficients.shape != expected:
            msg = f"Ensemble coefficient matrix has shape {coefficients.shape}, expected {expected}"
            raise FormatError(msg)
        if not (np.all(np.isfinite(coefficients)) and np.all(np.isfinite(intercepts))):
            raise FormatError("Ensemble contains missing or non-finite coefficients")

        fold_ids = tuple(str(f) for f in self.fold_ids) or tuple(
            str(i + 1) for i in range(intercepts.size)
        )
        if len(fold_ids) != intercepts.size:
            msg = f"Got {len(fold_ids)} fold ids for {intercepts.size} folds"
            raise FormatError(msg)

        object.__setattr__(self, "wavelengths", wavelengths)
        object.__setattr__(self, "intercepts", intercepts)
        object.__setattr__(self, "coefficients", coefficients)
        object.__setattr__(self, "fold_ids", fold_ids)

    @classmethod
    def from_tables(
        cls, tables: Sequence[CoefficientTable], fold_ids: Sequence[str] = ()
    ) -> "CoefficientEnsemble":
        """Stack individual fold models that share the same wavelength domain."""

        if len(tables) == 0:
            raise FormatError("Ensemble must contain at least one fold")
        reference = tables[0].wavelengths
        for idx, table in enumerate(tables[1:], start=2):
            if table.wavelengths.shape != reference.shape or not np.all(
                table.wavelengths == reference
            ):
                msg = (
                    f"Fold {idx} covers {table.domain}, "
                    f"expected {describe_domain(reference)}"
                )
                raise FormatError(msg)
        return cls(
            wavelengths=reference,
            intercepts=np.array([t.intercept for t in tables]),
            coefficients=np.vstack([t.coefficients for t in tables]),
            fold_ids=tuple(fold_ids),
        )

    def __len__(self) -> int:
        return int(self.intercepts.size)

    def __iter__(self) -> Iterator[CoefficientTable]:
        for idx in range(len(self)):
            yield self.fold(idx)

    def fold(self, index: int) -> CoefficientTable:
        return CoefficientTable(
            wavelengths=self.wavelengths,
            coefficients=self.coefficients[index],
            intercept=float(self.intercepts[index]),
        )

    @property
    def n_bands(self) -> int:
        return int(self.wavelengths.size)

    @property
    def domain(self) -> str:
        return describe_domain(self.wavelengths)


@dataclass(frozen=True)
class SpectralMatrix:
    """Reflectance observations: one row per sample, one column per wavelength.

    Columns always form a contiguous integer range. Missing reflectance is
    stored as ``NaN`` and propagates to a missing prediction for that row.
    """

    values: NDArray[np.float64]
    wavelengths: NDArray[np.int64]

    def __post_init__(self) -> None:
        values = _as_float_array(self.values, "Spectral matrix")
        wavelengths = _frozen_array(self.wavelengths, np.int64)
        if values.ndim != 2:
            raise FormatError(f"Spectral matrix must be 2-D (samples x wavelengths), got {values.shape}")
        if values.shape[1] != wavelengths.size:
            msg = (
                f"Spectral matrix has {values.shape[1]} columns but "
                f"{wavelengths.size} wavelengths"
            )
            raise FormatError(msg)
        check_contiguous(wavelengths, what="Spectral wavelengths")
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "wavelengths", wavelengths)

    @property
    def n_samples(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_bands(self) -> int:
        return int(self.values.shape[1])

    @property
    def domain(self) -> str:
        return describe_domain(self.wavelengths)

    def select(self, wavelengths: NDArray[np.int64]) -> NDArray[np.float64]:
        """Return the ``(R, len(wavelengths))`` reflectance block in the given order."""

        required = np.asarray(wavelengths, dtype=np.int64)
        missing = missing_wavelengths(required, self.wavelengths)
        if missing.size:
            msg = (
                f"Spectra cover {self.domain} but {missing.size} required wavelengths are "
                f"absent (first: {missing[:5].tolist()}); required {describe_domain(required)}"
            )
            raise DomainMismatchError(msg)
        start = int(self.wavelengths[0])
        return self.values[:, required - start]

    def window(self, start: int, end: int) -> "SpectralMatrix":
        """Restrict columns to the inclusive window ``[start, end]``."""

        wanted = wavelength_range(start, end)
        return SpectralMatrix(values=self.select(wanted), wavelengths=wanted)

    def take(self, indices: Sequence[int] | NDArray[np.intp]) -> "SpectralMatrix":
        idx = np.asarray(indices, dtype=np.intp)
        return SpectralMatrix(values=self.values[idx], wavelengths=self.wavelengths)

    def incomplete_rows(self) -> NDArray[np.bool_]:
        """Boolean mask of rows with at least one missing reflectance value."""

        return ~np.all(np.isfinite(self.values), axis=1)


@dataclass(frozen=True)
class SampleRecord:
    sample_id: str
    sample_date: str | None = None
    species_code: str | None = None
    common_name: str | None = None
    observed: float | None = None

    @property
    def has_observation(self) -> bool:
        return self.observed is not None and bool(np.isfinite(self.observed))


@dataclass(frozen=True)
class SpectralDataset:
    """Spectra with row-aligned sample metadata.

    Every row operation applies the same selection to both members, so the
    ``i``-th record always describes the ``i``-th spectrum.
    """

    spectra: SpectralMatrix
    records: tuple[SampleRecord, ...]

    def __post_init__(self) -> None:
        records = tuple(self.records)
        if len(records) != self.spectra.n_samples:
            msg = (
                f"Metadata has {len(records)} rows but spectral matrix has "
                f"{self.spectra.n_samples}"
            )
            raise FormatError(msg)
        object.__setattr__(self, "records", records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def sample_ids(self) -> list[str]:
        return [r.sample_id for r in self.records]

    def observed(self) -> NDArray[np.float64]:
        """Observed trait values with ``NaN`` where a record has none."""

        return np.array(
            [r.observed if r.observed is not None else np.nan for r in self.records],
            dtype=np.float64,
        )

    def take(self, indices: Sequence[int] | NDArray[np.intp]) -> "SpectralDataset":
        idx = np.asarray(indices, dtype=np.intp)
        return SpectralDataset(
            spectra=self.spectra.take(idx),
            records=tuple(self.records[int(i)] for i in idx),
        )

    def filter(self, mask: Sequence[bool] | NDArray[np.bool_]) -> "SpectralDataset":
        keep = np.asarray(mask, dtype=bool)
        if keep.shape != (len(self),):
            raise FormatError(f"Row mask has shape {keep.shape}, expected ({len(self)},)")
        return self.take(np.nonzero(keep)[0])

    def window(self, start: int, end: int) -> "SpectralDataset":
        return SpectralDataset(spectra=self.spectra.window(start, end), records=self.records)


@dataclass(frozen=True)
class PredictionResult:
    """Per-sample prediction with its jackknife interval."""

    sample_id: str
    point_estimate: float
    lower_bound: float
    upper_bound: float
    std_dev: float
    observed: float | None = None
    residual: float | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "sample_id": self.sample_id,
            "point_estimate": self.point_estimate,
            "std_dev": self.std_dev,
            "lower_bound": self.lower_bound,
            "upper_bound": self.upper_bound,
            "observed": self.observed,
            "residual": self.residual,
        }


@dataclass(frozen=True)
class FitSummary:
    """Aggregate agreement between predictions and observations."""

    rmse: float
    r_squared: float
    n: int
    slope: float = field(default=float("nan"))
    intercept: float = field(default=float("nan"))

    def as_dict(self) -> dict[str, float | int]:
        return {
            "rmse": float(self.rmse),
            "r_squared": float(self.r_squared),
            "n": int(self.n),
            "slope": float(self.slope),
            "intercept": float(self.intercept),
        }
