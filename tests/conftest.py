"""Pytest configuration and shared fixtures for the foliar test suite."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from foliar.types import (
    CoefficientEnsemble,
    CoefficientTable,
    SampleRecord,
    SpectralDataset,
    SpectralMatrix,
)

MODEL_WAVELENGTHS = np.array([1500, 1501, 1502], dtype=np.int64)


@pytest.fixture
def toy_model() -> CoefficientTable:
    return CoefficientTable(
        wavelengths=MODEL_WAVELENGTHS,
        coefficients=np.array([1.0, 2.0, -1.0]),
        intercept=0.5,
    )


@pytest.fixture
def toy_ensemble() -> CoefficientEnsemble:
    return CoefficientEnsemble(
        wavelengths=MODEL_WAVELENGTHS,
        intercepts=np.array([0.4, 0.5, 0.6]),
        coefficients=np.array(
            [
                [1.0, 2.0, -1.0],
                [1.1, 1.9, -1.0],
                [0.9, 2.1, -0.9],
            ]
        ),
        fold_ids=("1", "2", "3"),
    )


@pytest.fixture
def toy_dataset() -> SpectralDataset:
    # 1498-1503 so the model window is a strict sub-selection
    values = np.array(
        [
            [0.10, 0.11, 0.12, 0.20, 0.30, 0.31],
            [0.20, 0.21, 0.22, 0.25, 0.35, 0.36],
            [0.30, 0.31, 0.32, 0.40, 0.10, 0.11],
            [0.15, 0.16, 0.17, 0.18, 0.19, 0.20],
        ]
    )
    spectra = SpectralMatrix(values=values, wavelengths=np.arange(1498, 1504))
    records = (
        SampleRecord("S1", "2019-06-01", "ACRU", "red maple", 1.2),
        SampleRecord("S2", "2019-06-01", "QURU", "northern red oak", 1.4),
        SampleRecord("S3", "2019-06-02", "ACRU", "red maple", None),
        SampleRecord("S4", "2019-06-02", "FAGR", "American beech", 1.0),
    )
    return SpectralDataset(spectra=spectra, records=records)


@pytest.fixture
def write_csv(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [line.strip() for line in content.strip().splitlines()]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
