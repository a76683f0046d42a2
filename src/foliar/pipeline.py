"""Engine entry points: spectra + coefficients in, per-sample records and fit statistics out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from foliar.config.core import PredictionSettings, RunConfig
from foliar.data.validators import check_ensemble_domain, check_model_coverage, check_spectra_health
from foliar.errors import InsufficientDataError
from foliar.eval.metrics import evaluate, paired_mask, residuals
from foliar.io import tables
from foliar.predict import apply_back_transform, predict
from foliar.spectral.summary import SpectralSummary, summarize_spectra
from foliar.types import (
    CoefficientEnsemble,
    CoefficientTable,
    FitSummary,
    PredictionResult,
    SpectralDataset,
)
from foliar.uncertainty.jackknife import EnsemblePrediction, JackknifeEstimator
from foliar.wavelengths import wavelength_range

logger = logging.getLogger(__name__)

__all__ = [
    "PredictionReport",
    "assemble_results",
    "run_prediction",
    "load_inputs",
    "run_from_config",
    "summarize_from_config",
]


@dataclass(frozen=True)
class PredictionReport:
    """Everything one prediction run derives from its inputs."""

    results: tuple[PredictionResult, ...]
    ensemble: EnsemblePrediction
    fit: FitSummary | None

    @property
    def point_estimates(self) -> np.ndarray:
        return np.array([r.point_estimate for r in self.results], dtype=np.float64)


def _optional(value: float) -> float | None:
    return float(value) if np.isfinite(value) else None


def assemble_results(
    dataset: SpectralDataset,
    point: np.ndarray,
    ensemble: EnsemblePrediction,
) -> tuple[PredictionResult, ...]:
    """Zip row-aligned engine outputs into one :class:`PredictionResult` per sample."""

    n = len(dataset)
    if point.shape != (n,) or ensemble.std_dev.shape != (n,):
        msg = (
            f"Cannot align {n} samples with {point.shape[0]} point estimates and "
            f"{ensemble.std_dev.shape[0]} ensemble rows"
        )
        raise ValueError(msg)
    resid = residuals(point, dataset.observed())
    return tuple(
        PredictionResult(
            sample_id=record.sample_id,
            point_estimate=float(point[i]),
            lower_bound=float(ensemble.lower[i]),
            upper_bound=float(ensemble.upper[i]),
            std_dev=float(ensemble.std_dev[i]),
            observed=record.observed,
            residual=_optional(resid[i]),
        )
        for i, record in enumerate(dataset.records)
    )


def run_prediction(
    dataset: SpectralDataset,
    model: CoefficientTable,
    ensemble: CoefficientEnsemble,
    settings: PredictionSettings | None = None,
) -> PredictionReport:
    """Predict, quantify uncertainty and score a dataset against observations.

    The spectra are first restricted to ``settings.model_window``. A configured
    back-transform is applied to the point estimates and to each fold before
    the ensemble statistics are taken. Fit statistics are omitted (with a
    warning) when fewer than two samples have both an observation and a
    prediction, or when every observed value is identical.
    """

    settings = settings or PredictionSettings()
    window = settings.model_window
    spectra = dataset.spectra.window(window.start, window.end)
    check_model_coverage(spectra, model)
    check_model_coverage(spectra, ensemble)
    check_ensemble_domain(model, ensemble)

    point = apply_back_transform(predict(spectra, model), settings.back_transform)
    estimator = JackknifeEstimator(
        ensemble, interval=settings.interval, back_transform=settings.back_transform
    )
    jk = estimator.estimate(spectra)
    results = assemble_results(dataset, point, jk)

    observed = dataset.observed()
    usable = int(paired_mask(point, observed).sum())
    fit: FitSummary | None = None
    if usable < 2:
        logger.warning(
            "Only %d samples have an observed value and a prediction; skipping fit statistics",
            usable,
        )
    else:
        try:
            fit = evaluate(point, observed)
        except InsufficientDataError as exc:
            logger.warning("Skipping fit statistics: %s", exc)
        else:
            logger.info("RMSE = %.4f, R2 = %.4f (n = %d)", fit.rmse, fit.r_squared, fit.n)
    return PredictionReport(results=results, ensemble=jk, fit=fit)


def _require(path: Path | None, what: str) -> Path:
    if path is None:
        raise ValueError(f"No {what} configured under 'inputs'")
    return path


def _read_dataset(config: RunConfig) -> SpectralDataset:
    settings = config.prediction
    meta = config.metadata
    return tables.read_spectral_dataset(
        _require(config.inputs.spectra, "spectra table"),
        start=settings.spectra_window.start,
        end=settings.spectra_window.end,
        sample_id=meta.sample_id,
        sample_date=meta.sample_date,
        species_code=meta.species_code,
        common_name=meta.common_name,
        observed=meta.observed,
        reflectance_units=settings.reflectance_units,
        observed_scale=settings.observed_scale,
    )


def load_inputs(config: RunConfig) -> tuple[SpectralDataset, CoefficientTable, CoefficientEnsemble]:
    """Read the spectra and both coefficient tables named in ``config``.

    Both coefficient tables must cover exactly ``prediction.model_window``.
    """

    dataset = _read_dataset(config)
    check_spectra_health(dataset.spectra)
    window = config.prediction.model_window
    trained = wavelength_range(window.start, window.end)
    model = tables.read_coefficient_table(
        _require(config.inputs.model_coefficients, "model coefficients"), expected_wavelengths=trained
    )
    ensemble = tables.read_coefficient_ensemble(
        _require(config.inputs.ensemble_coefficients, "ensemble coefficients"),
        expected_wavelengths=trained,
    )
    return dataset, model, ensemble


def run_from_config(config: RunConfig, *, write: bool = True) -> PredictionReport:
    """Load inputs, run the engine and (optionally) write all result files."""

    dataset, model, ensemble = load_inputs(config)
    report = run_prediction(dataset, model, ensemble, config.prediction)
    if write:
        out = config.output
        frame = tables.predictions_frame(dataset.records, report.results, out.trait_label)
        tables.write_predictions(frame, out.directory / out.predictions_file)
        if report.fit is not None:
            tables.write_fit_summary(report.fit, out.directory / out.fit_summary_file)
    return report


def summarize_from_config(config: RunConfig, *, write: bool = True) -> SpectralSummary:
    """Per-wavelength mean and quantile envelope of the configured spectra."""

    dataset = _read_dataset(config)
    summary = summarize_spectra(dataset.spectra)
    if write:
        out = config.output
        tables.write_spectral_summary(summary.as_columns(), out.directory / out.spectral_summary_file)
    return summary
