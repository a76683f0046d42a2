from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from foliar.errors import DomainMismatchError
from foliar.predict import BackTransform, apply_back_transform, linear_response, predict
from foliar.types import CoefficientTable, SpectralDataset, SpectralMatrix


@st.composite
def _spectra(draw, *, max_rows: int = 8, max_bands: int = 12):
    n_rows = draw(st.integers(min_value=0, max_value=max_rows))
    n_bands = draw(st.integers(min_value=1, max_value=max_bands))
    start = draw(st.integers(min_value=350, max_value=2000))
    cells = draw(
        st.lists(
            st.floats(min_value=0.0, max_value=1.0, allow_nan=False),
            min_size=n_rows * n_bands,
            max_size=n_rows * n_bands,
        )
    )
    values = np.asarray(cells, dtype=np.float64).reshape(n_rows, n_bands)
    return SpectralMatrix(values=values, wavelengths=np.arange(start, start + n_bands))


def test_two_band_toy_model() -> None:
    model = CoefficientTable(wavelengths=np.array([1, 2]), coefficients=np.array([1.0, 2.0]), intercept=0.5)
    spectra = SpectralMatrix(values=np.array([[0.1, 0.2]]), wavelengths=np.array([1, 2]))

    np.testing.assert_allclose(predict(spectra, model), [1.0])


def test_predict_restricts_to_model_domain(toy_dataset: SpectralDataset, toy_model: CoefficientTable) -> None:
    estimates = predict(toy_dataset.spectra, toy_model)

    block = toy_dataset.spectra.values[:, 2:5]
    expected = block @ np.array([1.0, 2.0, -1.0]) + 0.5
    np.testing.assert_allclose(estimates, expected)
    assert estimates[0] == pytest.approx(0.72)


@settings(max_examples=50, deadline=None)
@given(_spectra(), st.floats(min_value=-10, max_value=10, allow_nan=False))
def test_output_length_matches_rows_and_zero_model_is_constant(spectra: SpectralMatrix, intercept: float) -> None:
    model = CoefficientTable(wavelengths=spectra.wavelengths, coefficients=np.zeros(spectra.n_bands), intercept=intercept)

    estimates = predict(spectra, model)

    assert estimates.shape == (spectra.n_samples,)
    np.testing.assert_array_equal(estimates, np.full(spectra.n_samples, intercept))


def test_missing_reflectance_only_affects_its_row(toy_model: CoefficientTable) -> None:
    values = np.array([[0.1, 0.2, 0.3], [np.nan, 0.2, 0.3], [0.1, 0.2, 0.3]])
    spectra = SpectralMatrix(values=values, wavelengths=toy_model.wavelengths)

    estimates = predict(spectra, toy_model)

    assert estimates.shape == (3,)
    assert np.isnan(estimates[1])
    assert np.isfinite(estimates[[0, 2]]).all()
    assert estimates[0] == pytest.approx(estimates[2])


def test_missing_reflectance_yields_nan_even_with_zero_coefficient() -> None:
    model = CoefficientTable(wavelengths=np.array([1, 2]), coefficients=np.array([0.0, 1.0]), intercept=0.0)
    spectra = SpectralMatrix(values=np.array([[np.nan, 0.5]]), wavelengths=np.array([1, 2]))

    assert np.isnan(predict(spectra, model)[0])


def test_domain_mismatch_is_an_error(toy_model: CoefficientTable) -> None:
    spectra = SpectralMatrix(values=np.ones((2, 2)), wavelengths=np.array([1500, 1501]))

    with pytest.raises(DomainMismatchError, match="1502"):
        predict(spectra, toy_model)


def test_linear_response_handles_many_models() -> None:
    block = np.array([[1.0, 2.0], [np.nan, 1.0]])
    coefs = np.array([[1.0, 0.0], [0.0, 1.0]])

    out = linear_response(block, coefs, np.array([10.0, 20.0]))

    np.testing.assert_allclose(out[0], [11.0, 22.0])
    assert np.isnan(out[1]).all()


def test_back_transform_square_keeps_missing() -> None:
    values = np.array([1.5, np.nan, -2.0])

    np.testing.assert_allclose(apply_back_transform(values, "none"), values)
    squared = apply_back_transform(values, BackTransform.SQUARE)
    np.testing.assert_allclose(squared[[0, 2]], [2.25, 4.0])
    assert np.isnan(squared[1])
    with pytest.raises(ValueError):
        apply_back_transform(values, "log")
