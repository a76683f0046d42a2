"""Utilities for handling integer wavelength domains.

Models and spectra in this package are indexed by whole nanometres. The helpers
below parse column labels into wavelengths, validate ordering and contiguity, and
format domains for error messages.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

import numpy as np
from numpy.typing import NDArray

from foliar.errors import FormatError

logger = logging.getLogger(__name__)

# Accepts "1500", "1500.0", "Wave_1500", "X1500", "wl_1500nm".
_LABEL_PATTERN = re.compile(r"^[A-Za-z_ ]*?(\d+)(?:\.0*)?\s*(?:nm)?$", re.IGNORECASE)

__all__ = [
    "parse_wavelength_label",
    "as_wavelengths",
    "wavelength_range",
    "check_monotonic",
    "check_contiguous",
    "wavelength_equal",
    "missing_wavelengths",
    "describe_domain",
]


def parse_wavelength_label(label: object) -> int:
    """Return the integer wavelength encoded in a column or row label.

    Integers and integral floats are returned as-is. Strings may carry a short
    alphabetic prefix such as ``Wave_`` or ``X`` (as written by R when numeric
    column names are made syntactic) and an optional ``nm`` suffix.
    """

    if isinstance(label, (bool, np.bool_)):
        raise FormatError(f"Invalid wavelength label: {label!r}")
    if isinstance(label, (int, np.integer)):
        return int(label)
    if isinstance(label, (float, np.floating)):
        if np.isfinite(label) and float(label).is_integer():
            return int(label)
        raise FormatError(f"Wavelength label is not a whole nanometre value: {label!r}")

    match = _LABEL_PATTERN.match(str(label).strip())
    if match is None:
        raise FormatError(f"Cannot parse wavelength from label {label!r}")
    return int(match.group(1))


def as_wavelengths(values: Iterable[object]) -> NDArray[np.int64]:
    """Parse a sequence of labels into a 1-D ``int64`` wavelength array."""

    return np.asarray([parse_wavelength_label(v) for v in values], dtype=np.int64)


def wavelength_range(start: int, end: int) -> NDArray[np.int64]:
    """Return the inclusive integer range ``[start, end]``."""

    if end < start:
        msg = f"Wavelength window end ({end}) precedes start ({start})"
        raise ValueError(msg)
    return np.arange(int(start), int(end) + 1, dtype=np.int64)


def check_monotonic(wavelengths: NDArray[np.int64], *, what: str = "wavelengths") -> None:
    """Validate that ``wavelengths`` is a strictly increasing 1-D array.

    Raises
    ------
    FormatError
        If the array is not one-dimensional, or contains repeated or
        decreasing entries.
    """

    arr = np.asarray(wavelengths)
    if arr.ndim != 1:
        raise FormatError(f"{what} must be a 1-D array, got shape {arr.shape}")
    if arr.size <= 1:
        return
    diffs = np.diff(arr)
    if np.any(diffs == 0):
        dupes = np.unique(arr[1:][diffs == 0])
        raise FormatError(f"{what} contain duplicates: {dupes[:5].tolist()}")
    if np.any(diffs < 0):
        first = int(np.argmax(diffs < 0))
        msg = (
            f"{what} must be strictly increasing "
            f"(found {int(arr[first])} followed by {int(arr[first + 1])})"
        )
        raise FormatError(msg)


def check_contiguous(wavelengths: NDArray[np.int64], *, what: str = "wavelengths") -> None:
    """Validate that ``wavelengths`` is the full integer range between its ends."""

    check_monotonic(wavelengths, what=what)
    arr = np.asarray(wavelengths)
    if arr.size <= 1:
        return
    expected = int(arr[-1]) - int(arr[0]) + 1
    if arr.size != expected:
        gaps = np.nonzero(np.diff(arr) != 1)[0]
        msg = (
            f"{what} must form a contiguous range {int(arr[0])}-{int(arr[-1])} "
            f"({expected} bands), got {arr.size} bands; first gap after {int(arr[gaps[0]])} nm"
        )
        raise FormatError(msg)


def wavelength_equal(a: NDArray[np.int64], b: NDArray[np.int64]) -> bool:
    """Return ``True`` when two wavelength domains are identical."""

    a_arr = np.asarray(a)
    b_arr = np.asarray(b)
    return a_arr.shape == b_arr.shape and bool(np.all(a_arr == b_arr))


def missing_wavelengths(
    required: NDArray[np.int64], available: NDArray[np.int64]
) -> NDArray[np.int64]:
    """Return the entries of ``required`` that are absent from ``available``."""

    required_arr = np.asarray(required, dtype=np.int64)
    return required_arr[~np.isin(required_arr, np.asarray(available, dtype=np.int64))]


def describe_domain(wavelengths: NDArray[np.int64]) -> str:
    """Short human-readable description used in error messages."""

    arr = np.asarray(wavelengths)
    if arr.size == 0:
        return "empty domain"
    return f"{int(arr.min())}-{int(arr.max())} nm ({arr.size} bands)"
