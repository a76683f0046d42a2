"""Configuration schemas for foliar trait prediction runs.

These Pydantic models describe where the coefficient tables and spectra come
from, how the spectra are windowed and normalised, and where results go.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from foliar.predict import BackTransform
from foliar.types import ReflectanceUnits


class WavelengthWindow(BaseModel):
    """Inclusive wavelength window in whole nanometres."""

    model_config = ConfigDict(extra="forbid")

    start: int = Field(..., description="First wavelength (nm)")
    end: int = Field(..., description="Last wavelength (nm), inclusive")

    @model_validator(mode="after")
    def _ordered(self) -> "WavelengthWindow":
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")
        return self

    def contains(self, other: "WavelengthWindow") -> bool:
        return self.start <= other.start and other.end <= self.end


class InputConfig(BaseModel):
    """Locations of the engine inputs supplied by upstream collaborators."""

    model_config = ConfigDict(extra="forbid")

    model_coefficients: Path | None = Field(
        None, description="CSV with the intercept row followed by wavelength/coefficient rows"
    )
    ensemble_coefficients: Path | None = Field(
        None, description="CSV with one jackknife fold per row: id, intercept, coefficients"
    )
    spectra: Path | None = Field(
        None, description="CSV with sample metadata columns and one column per wavelength"
    )


class MetadataColumns(BaseModel):
    """Column names of the per-sample metadata in the spectra table."""

    model_config = ConfigDict(extra="forbid")

    sample_id: str = "Sample_ID"
    sample_date: str | None = "Sample_Date"
    species_code: str | None = "USDA Symbol"
    common_name: str | None = "Common Name"
    observed: str | None = "Nitrogen"


class PredictionSettings(BaseModel):
    """Spectral windows, unit handling and interval settings for the engine."""

    model_config = ConfigDict(extra="forbid")

    spectra_window: WavelengthWindow = Field(
        default_factory=lambda: WavelengthWindow(start=500, end=2400),
        description="Band kept when reading spectra",
    )
    model_window: WavelengthWindow = Field(
        default_factory=lambda: WavelengthWindow(start=1500, end=2400),
        description="Band the PLSR coefficients were trained on",
    )
    reflectance_units: ReflectanceUnits = ReflectanceUnits.FRACTION
    observed_scale: float = Field(
        0.1, description="Multiplier applied to observed values (mg/g to percent by default)"
    )
    back_transform: BackTransform = BackTransform.NONE
    interval: tuple[float, float] = Field((0.025, 0.975), description="Lower/upper quantile probabilities")

    @field_validator("interval")
    @classmethod
    def _check_interval(cls, value: tuple[float, float]) -> tuple[float, float]:
        lo, hi = value
        if not 0.0 <= lo < hi <= 1.0:
            raise ValueError(f"Interval probabilities must satisfy 0 <= lower < upper <= 1, got {value}")
        return value

    @model_validator(mode="after")
    def _model_inside_spectra(self) -> "PredictionSettings":
        if not self.spectra_window.contains(self.model_window):
            msg = (
                f"Model window {self.model_window.start}-{self.model_window.end} nm lies outside "
                f"spectra window {self.spectra_window.start}-{self.spectra_window.end} nm"
            )
            raise ValueError(msg)
        return self


class OutputConfig(BaseModel):
    """Destination of per-sample records and summaries."""

    model_config = ConfigDict(extra="forbid")

    directory: Path = Field(Path("outputs"), description="Directory receiving all result files")
    predictions_file: str = "plsr_estimated_foliar_nitrogen.csv"
    fit_summary_file: str = "fit_summary.json"
    spectral_summary_file: str = "spectra_summary.csv"
    trait_label: str = Field("Leaf_N", description="Trait name embedded in output column headers")


class RunConfig(BaseModel):
    """Top-level configuration tying inputs, engine settings and outputs together."""

    model_config = ConfigDict(extra="forbid")

    inputs: InputConfig = Field(default_factory=InputConfig)
    metadata: MetadataColumns = Field(default_factory=MetadataColumns)
    prediction: PredictionSettings = Field(default_factory=PredictionSettings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
