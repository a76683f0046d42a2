from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from foliar.errors import DomainMismatchError, FormatError
from foliar.io import tables
from foliar.types import FitSummary, PredictionResult


def test_read_coefficient_table_with_intercept_row(write_csv) -> None:
    path = write_csv(
        "coefs.csv",
        """
        wavelength,coefs
        (Intercept),0.75
        Wave_1500,0.1
        Wave_1501,-0.2
        Wave_1502,0.3
        """,
    )

    table = tables.read_coefficient_table(path, expected_wavelengths=[1500, 1501, 1502])

    assert table.intercept == pytest.approx(0.75)
    np.testing.assert_array_equal(table.wavelengths, [1500, 1501, 1502])
    np.testing.assert_allclose(table.coefficients, [0.1, -0.2, 0.3])


def test_coefficient_row_count_must_match_expected_domain(write_csv) -> None:
    path = write_csv(
        "coefs.csv",
        """
        wavelength,coefs
        Intercept,0.75
        1500,0.1
        1501,-0.2
        """,
    )

    with pytest.raises(FormatError, match="expected 3"):
        tables.read_coefficient_table(path, expected_wavelengths=[1500, 1501, 1502])


def test_coefficient_wavelengths_must_increase(write_csv) -> None:
    path = write_csv(
        "coefs.csv",
        """
        wavelength,coefs
        Intercept,0.75
        1501,0.1
        1500,-0.2
        """,
    )

    with pytest.raises(FormatError, match="strictly increasing"):
        tables.read_coefficient_table(path)


def test_non_numeric_coefficient_is_a_format_error(write_csv) -> None:
    path = write_csv(
        "coefs.csv",
        """
        wavelength,coefs
        Intercept,0.75
        1500,abc
        """,
    )

    with pytest.raises(FormatError, match="non-numeric"):
        tables.read_coefficient_table(path)


def test_read_coefficient_ensemble(write_csv) -> None:
    path = write_csv(
        "jk.csv",
        """
        fold,intercept,Wave_1500,Wave_1501
        1,0.5,0.1,0.2
        2,0.6,0.11,0.19
        3,0.4,0.09,0.21
        """,
    )

    ensemble = tables.read_coefficient_ensemble(path)

    assert len(ensemble) == 3
    assert ensemble.fold_ids == ("1", "2", "3")
    np.testing.assert_array_equal(ensemble.wavelengths, [1500, 1501])
    np.testing.assert_allclose(ensemble.intercepts, [0.5, 0.6, 0.4])
    np.testing.assert_allclose(ensemble.coefficients[1], [0.11, 0.19])


def test_ragged_ensemble_row_is_a_format_error(write_csv) -> None:
    path = write_csv(
        "jk.csv",
        """
        fold,intercept,Wave_1500,Wave_1501
        1,0.5,0.1,0.2
        2,0.6,0.11
        """,
    )

    with pytest.raises(FormatError, match="row 2 has 1 coefficients, expected 2"):
        tables.read_coefficient_ensemble(path)


def test_ensemble_with_explicit_wavelengths() -> None:
    frame = pd.DataFrame({"id": ["a", "b"], "b0": [0.0, 1.0], "c1": [1.0, 2.0], "c2": [3.0, 4.0]})

    ensemble = tables.coefficient_ensemble_from_frame(frame, wavelengths=[700, 701])

    np.testing.assert_array_equal(ensemble.wavelengths, [700, 701])
    with pytest.raises(FormatError, match="3 wavelengths for 2"):
        tables.coefficient_ensemble_from_frame(frame, wavelengths=[700, 701, 702])


def _spectra_csv(write_csv) -> Path:
    return write_csv(
        "spectra.csv",
        """
        Sample_ID,Sample_Date,USDA Symbol,Common Name,Nitrogen,499,500,501,502
        A1,2017-07-01,ACRU,red maple,21.0,0.1,0.2,0.3,0.4
        A2,2017-07-02,QURU,northern red oak,,0.2,0.3,,0.5
        A3,2017-07-03,FAGR,American beech,18.5,0.3,0.4,0.5,0.6
        """,
    )


def test_read_spectral_dataset_windows_and_scales(write_csv) -> None:
    dataset = tables.read_spectral_dataset(_spectra_csv(write_csv), start=500, end=502, observed_scale=0.1)

    assert dataset.sample_ids == ["A1", "A2", "A3"]
    np.testing.assert_array_equal(dataset.spectra.wavelengths, [500, 501, 502])
    np.testing.assert_allclose(dataset.spectra.values[0], [0.2, 0.3, 0.4])
    assert np.isnan(dataset.spectra.values[1, 1])
    assert dataset.records[0].observed == pytest.approx(2.1)
    assert dataset.records[1].observed is None
    assert dataset.records[2].species_code == "FAGR"
    assert dataset.records[2].common_name == "American beech"


def test_percent_reflectance_is_normalised() -> None:
    frame = pd.DataFrame({"Sample_ID": ["x"], "500": [25.0], "501": [50.0]})

    dataset = tables.spectral_dataset_from_frame(
        frame, start=500, end=501, observed=None, reflectance_units="percent"
    )

    np.testing.assert_allclose(dataset.spectra.values, [[0.25, 0.5]])


def test_spectra_window_must_be_covered(write_csv) -> None:
    with pytest.raises(DomainMismatchError, match="503"):
        tables.read_spectral_dataset(_spectra_csv(write_csv), start=500, end=503)


def test_spectra_need_a_sample_id_column() -> None:
    frame = pd.DataFrame({"id": ["x"], "500": [0.1]})

    with pytest.raises(FormatError, match="sample id"):
        tables.spectral_dataset_from_frame(frame, start=500, end=500)


def test_non_numeric_reflectance_is_a_format_error() -> None:
    frame = pd.DataFrame({"Sample_ID": ["x", "y"], "500": ["0.1", "n/a?"]})

    with pytest.raises(FormatError, match="Reflectance"):
        tables.spectral_dataset_from_frame(frame, start=500, end=500)


def test_writers_round_out_a_run(tmp_path: Path, toy_dataset) -> None:
    results = [
        PredictionResult(r.sample_id, 1.0, 0.9, 1.1, 0.05, r.observed, None if r.observed is None else 1.0 - r.observed)
        for r in toy_dataset.records
    ]

    frame = tables.predictions_frame(toy_dataset.records, results, trait_label="N")
    tables.write_predictions(frame, tmp_path / "out" / "pred.csv")
    tables.write_fit_summary(FitSummary(rmse=0.1, r_squared=0.9, n=3, slope=1.0, intercept=0.0), tmp_path / "out" / "fit.json")

    written = pd.read_csv(tmp_path / "out" / "pred.csv")
    assert list(written.columns) == [
        "sample_id",
        "sample_date",
        "species_code",
        "common_name",
        "observed",
        "N_estimate",
        "N_sd",
        "N_lower",
        "N_upper",
        "residual",
    ]
    assert written["sample_id"].tolist() == ["S1", "S2", "S3", "S4"]
    assert np.isnan(written.loc[2, "residual"])
    fit = json.loads((tmp_path / "out" / "fit.json").read_text())
    assert fit["n"] == 3
    assert fit["r_squared"] == pytest.approx(0.9)


def test_predictions_frame_refuses_misaligned_results(toy_dataset) -> None:
    results = [PredictionResult("other", 1.0, 0.9, 1.1, 0.05)] * len(toy_dataset)

    with pytest.raises(FormatError, match="aligned"):
        tables.predictions_frame(toy_dataset.records, results)


def test_blank_sample_id_is_a_format_error() -> None:
    frame = pd.DataFrame({"Sample_ID": ["x", None, " "], "500": [0.1, 0.2, 0.3]})

    with pytest.raises(FormatError, match=r"empty on data row\(s\) \[2, 3\]"):
        tables.spectral_dataset_from_frame(frame, start=500, end=500)
