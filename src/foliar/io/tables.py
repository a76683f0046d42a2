"""Readers and writers for the delimited tables around the prediction engine.

Three inputs are supported:

* the primary PLSR coefficient table: a two-column CSV whose first data row is
  the intercept and whose remaining rows are ``wavelength, coefficient`` pairs;
* the jackknife coefficient table: one fold per row laid out as
  ``fold_id, intercept, coefficient_1 ... coefficient_C`` with wavelength
  labels in the header;
* a spectra table (e.g. an EcoSIS export) with per-sample metadata columns and
  one reflectance column per integer wavelength.

Everything is parsed with :mod:`pandas` and converted into the immutable types
from :mod:`foliar.types`; malformed content raises :class:`FormatError`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import IO, Any

import numpy as np
import pandas as pd

from foliar.errors import DomainMismatchError, FormatError
from foliar.types import (
    CoefficientEnsemble,
    CoefficientTable,
    FitSummary,
    PredictionResult,
    ReflectanceUnits,
    SampleRecord,
    SpectralDataset,
    SpectralMatrix,
)
from foliar.utils.io import ensure_parent, write_json
from foliar.wavelengths import (
    as_wavelengths,
    describe_domain,
    parse_wavelength_label,
    wavelength_equal,
    wavelength_range,
)

logger = logging.getLogger(__name__)

TableSource = str | os.PathLike[str] | IO[str] | pd.DataFrame

__all__ = [
    "coefficient_table_from_frame",
    "coefficient_ensemble_from_frame",
    "spectral_dataset_from_frame",
    "read_coefficient_table",
    "read_coefficient_ensemble",
    "read_spectral_dataset",
    "predictions_frame",
    "write_predictions",
    "write_fit_summary",
    "write_spectral_summary",
]


def _read_frame(src: TableSource) -> pd.DataFrame:
    if isinstance(src, pd.DataFrame):
        return src
    try:
        return pd.read_csv(src)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise FormatError(f"Could not parse table {src!r}: {exc}") from exc


def _numeric(values: pd.Series | pd.DataFrame, what: str) -> np.ndarray:
    try:
        if isinstance(values, pd.DataFrame):
            converted = values.apply(pd.to_numeric)
        else:
            converted = pd.to_numeric(values)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"{what} contains a non-numeric cell: {exc}") from exc
    return np.asarray(converted, dtype=np.float64)


def _check_expected(
    wavelengths: np.ndarray, expected: Sequence[int] | np.ndarray | None, what: str
) -> None:
    if expected is None:
        return
    expected_arr = np.asarray(expected, dtype=np.int64)
    if wavelengths.size != expected_arr.size:
        msg = (
            f"{what} defines {wavelengths.size} wavelength coefficients, "
            f"expected {expected_arr.size} for {describe_domain(expected_arr)}"
        )
        raise FormatError(msg)
    if not wavelength_equal(wavelengths, expected_arr):
        msg = f"{what} covers {describe_domain(wavelengths)}, expected {describe_domain(expected_arr)}"
        raise FormatError(msg)


def coefficient_table_from_frame(
    frame: pd.DataFrame, expected_wavelengths: Sequence[int] | np.ndarray | None = None
) -> CoefficientTable:
    """Convert a two-column coefficient frame into a :class:`CoefficientTable`.

    The first row holds the intercept (its label is ignored); the others hold
    one ``wavelength, coefficient`` pair each.
    """

    if frame.shape[1] < 2:
        raise FormatError(f"Coefficient table needs 2 columns, got {frame.shape[1]}")
    if frame.shape[0] < 2:
        raise FormatError(f"Coefficient table needs an intercept row and at least one band, got {frame.shape[0]} rows")

    labels = frame.iloc[:, 0]
    values = _numeric(frame.iloc[:, 1], "Coefficient column")
    wavelengths = as_wavelengths(labels.iloc[1:])
    _check_expected(wavelengths, expected_wavelengths, "Coefficient table")
    if np.isnan(values).any():
        row = int(np.argmax(np.isnan(values)))
        raise FormatError(f"Coefficient table has an empty value on row {row + 1}")
    return CoefficientTable(wavelengths=wavelengths, coefficients=values[1:], intercept=float(values[0]))


def coefficient_ensemble_from_frame(
    frame: pd.DataFrame,
    *,
    wavelengths: Sequence[int] | np.ndarray | None = None,
    expected_wavelengths: Sequence[int] | np.ndarray | None = None,
) -> CoefficientEnsemble:
    """Convert a jackknife coefficient frame into a :class:`CoefficientEnsemble`.

    Wavelengths come from the header labels of the coefficient columns unless
    given explicitly. Every fold must carry the same number of coefficients.
    """

    if frame.shape[1] < 3:
        raise FormatError(f"Ensemble table needs fold id, intercept and coefficients, got {frame.shape[1]} columns")
    if frame.shape[0] == 0:
        raise FormatError("Ensemble table has no folds")

    coef_block = frame.iloc[:, 2:]
    if wavelengths is None:
        domain = as_wavelengths(coef_block.columns)
    else:
        domain = np.asarray(wavelengths, dtype=np.int64)
        if domain.size != coef_block.shape[1]:
            msg = f"Got {domain.size} wavelengths for {coef_block.shape[1]} coefficient columns"
            raise FormatError(msg)
    _check_expected(domain, expected_wavelengths, "Ensemble table")

    coefficients = _numeric(coef_block, "Ensemble coefficients")
    intercepts = _numeric(frame.iloc[:, 1], "Ensemble intercepts")
    lengths = np.isfinite(coefficients).sum(axis=1)
    short = np.nonzero(lengths != domain.size)[0]
    if short.size:
        row = int(short[0])
        msg = (
            f"Fold on row {row + 1} has {int(lengths[row])} coefficients, "
            f"expected {domain.size} like its peers"
        )
        raise FormatError(msg)
    if not np.all(np.isfinite(intercepts)):
        raise FormatError("Ensemble table has a missing intercept")

    return CoefficientEnsemble(
        wavelengths=domain,
        intercepts=intercepts,
        coefficients=coefficients,
        fold_ids=tuple(str(f) for f in frame.iloc[:, 0]),
    )


def _wavelength_columns(frame: pd.DataFrame, reserved: set[str]) -> tuple[dict[int, Any], set[int]]:
    columns: dict[int, Any] = {}
    duplicates: set[int] = set()
    for column in frame.columns:
        if str(column) in reserved:
            continue
        try:
            wl = parse_wavelength_label(column)
        except FormatError:
            continue
        if wl in columns:
            duplicates.add(wl)
            continue
        columns[wl] = column
    return columns, duplicates


def _optional_text(frame: pd.DataFrame, column: str | None) -> list[str | None]:
    if column is None:
        return [None] * len(frame)
    if column not in frame.columns:
        logger.warning("Metadata column %r not found; leaving it empty", column)
        return [None] * len(frame)
    return [None if pd.isna(v) else str(v) for v in frame[column]]


def _sample_ids(column: pd.Series) -> list[str]:
    ids = [None if pd.isna(v) else str(v).strip() for v in column]
    blank = [i + 1 for i, v in enumerate(ids) if not v]
    if blank:
        msg = f"Sample id column {column.name!r} is empty on data row(s) {blank[:5]}"
        raise FormatError(msg)
    return ids  # type: ignore[return-value]


def spectral_dataset_from_frame(
    frame: pd.DataFrame,
    *,
    start: int,
    end: int,
    sample_id: str = "Sample_ID",
    sample_date: str | None = "Sample_Date",
    species_code: str | None = "USDA Symbol",
    common_name: str | None = "Common Name",
    observed: str | None = "Nitrogen",
    reflectance_units: ReflectanceUnits | str = ReflectanceUnits.FRACTION,
    observed_scale: float = 1.0,
) -> SpectralDataset:
    """Split a wide spectra table into aligned spectra and sample records.

    Only wavelength columns inside ``[start, end]`` are kept; the whole window
    must be present. Empty reflectance cells become ``NaN``.
    """

    if sample_id not in frame.columns:
        raise FormatError(f"Spectra table has no sample id column {sample_id!r}")
    reserved = {c for c in (sample_id, sample_date, species_code, common_name, observed) if c}
    available, duplicates = _wavelength_columns(frame, reserved)
    wanted = wavelength_range(start, end)
    clashes = sorted(w for w in duplicates if start <= w <= end)
    if clashes:
        raise FormatError(f"Spectra table has duplicate columns for wavelengths {clashes[:5]}")
    missing = [int(w) for w in wanted if int(w) not in available]
    if missing:
        have = np.array(sorted(available), dtype=np.int64)
        msg = (
            f"Spectra table covers {describe_domain(have)} but window {start}-{end} nm "
            f"needs {len(missing)} more columns (first: {missing[:5]})"
        )
        raise DomainMismatchError(msg)

    values = _numeric(frame[[available[int(w)] for w in wanted]], "Reflectance")
    if ReflectanceUnits(reflectance_units) is ReflectanceUnits.PERCENT:
        values = values / 100.0

    if observed is not None and observed in frame.columns:
        obs = _numeric(frame[observed], f"Observed column {observed!r}") * float(observed_scale)
    else:
        if observed is not None:
            logger.warning("Observed column %r not found; residuals will be empty", observed)
        obs = np.full(len(frame), np.nan)

    ids = _sample_ids(frame[sample_id])
    dates = _optional_text(frame, sample_date)
    species = _optional_text(frame, species_code)
    names = _optional_text(frame, common_name)
    records = tuple(
        SampleRecord(
            sample_id=ids[i],
            sample_date=dates[i],
            species_code=species[i],
            common_name=names[i],
            observed=float(obs[i]) if np.isfinite(obs[i]) else None,
        )
        for i in range(len(frame))
    )
    spectra = SpectralMatrix(values=values, wavelengths=wanted)
    logger.info("Loaded %d spectra over %s", spectra.n_samples, spectra.domain)
    return SpectralDataset(spectra=spectra, records=records)


def read_coefficient_table(
    src: TableSource, expected_wavelengths: Sequence[int] | np.ndarray | None = None
) -> CoefficientTable:
    table = coefficient_table_from_frame(_read_frame(src), expected_wavelengths)
    logger.info("Loaded PLSR coefficients over %s", table.domain)
    return table


def read_coefficient_ensemble(
    src: TableSource,
    *,
    wavelengths: Sequence[int] | np.ndarray | None = None,
    expected_wavelengths: Sequence[int] | np.ndarray | None = None,
) -> CoefficientEnsemble:
    ensemble = coefficient_ensemble_from_frame(
        _read_frame(src), wavelengths=wavelengths, expected_wavelengths=expected_wavelengths
    )
    logger.info("Loaded %d jackknife folds over %s", len(ensemble), ensemble.domain)
    return ensemble


def read_spectral_dataset(src: TableSource, **kwargs: Any) -> SpectralDataset:
    """Read a spectra table; keyword arguments go to :func:`spectral_dataset_from_frame`."""

    return spectral_dataset_from_frame(_read_frame(src), **kwargs)


def predictions_frame(
    records: Sequence[SampleRecord],
    results: Sequence[PredictionResult],
    trait_label: str = "Leaf_N",
) -> pd.DataFrame:
    """One row per sample: metadata followed by the estimate, spread and residual."""

    if len(records) != len(results):
        raise FormatError(f"Got {len(results)} results for {len(records)} sample records")
    rows = []
    for record, result in zip(records, results):
        if record.sample_id != result.sample_id:
            raise FormatError(f"Result for {result.sample_id!r} is aligned with record {record.sample_id!r}")
        rows.append(
            {
                "sample_id": record.sample_id,
                "sample_date": record.sample_date,
                "species_code": record.species_code,
                "common_name": record.common_name,
                "observed": record.observed,
                f"{trait_label}_estimate": result.point_estimate,
                f"{trait_label}_sd": result.std_dev,
                f"{trait_label}_lower": result.lower_bound,
                f"{trait_label}_upper": result.upper_bound,
                "residual": result.residual,
            }
        )
    return pd.DataFrame(rows)


def write_predictions(frame: pd.DataFrame, path: str | os.PathLike[str]) -> None:
    destination = ensure_parent(path)
    frame.to_csv(destination, index=False)
    logger.info("Wrote %d predictions to %s", len(frame), destination)


def write_fit_summary(summary: FitSummary, path: str | os.PathLike[str]) -> None:
    destination = write_json(path, summary.as_dict())
    logger.info("Wrote fit summary to %s", destination)


def write_spectral_summary(columns: dict[str, Any], path: str | os.PathLike[str]) -> None:
    destination = ensure_parent(path)
    pd.DataFrame(columns).to_csv(destination, index=False)
    logger.info("Wrote spectral summary to %s", destination)
