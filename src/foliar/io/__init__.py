"""Tabular readers and writers for coefficients, spectra and results."""

from .tables import (
    coefficient_ensemble_from_frame,
    coefficient_table_from_frame,
    predictions_frame,
    read_coefficient_ensemble,
    read_coefficient_table,
    read_spectral_dataset,
    spectral_dataset_from_frame,
    write_fit_summary,
    write_predictions,
    write_spectral_summary,
)

__all__ = [
    "coefficient_ensemble_from_frame",
    "coefficient_table_from_frame",
    "predictions_frame",
    "read_coefficient_ensemble",
    "read_coefficient_table",
    "read_spectral_dataset",
    "spectral_dataset_from_frame",
    "write_fit_summary",
    "write_predictions",
    "write_spectral_summary",
]
