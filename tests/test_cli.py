from __future__ import annotations

import json
import re
from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from foliar.cli import app


def _output(result) -> str:
    return result.stdout + (result.stderr or "")


def _write_run(write_csv, tmp_path: Path) -> Path:
    write_csv(
        "data/coefs.csv",
        """
        wavelength,coefs
        (Intercept),0.5
        Wave_1500,1.0
        Wave_1501,2.0
        Wave_1502,-1.0
        """,
    )
    write_csv(
        "data/jackknife.csv",
        """
        fold,intercept,Wave_1500,Wave_1501,Wave_1502
        1,0.4,1.0,2.0,-1.0
        2,0.5,1.1,1.9,-1.0
        3,0.6,0.9,2.1,-0.9
        """,
    )
    write_csv(
        "data/spectra.csv",
        """
        Sample_ID,Sample_Date,USDA Symbol,Common Name,Nitrogen,1500,1501,1502
        S1,2019-06-01,ACRU,red maple,12.0,0.12,0.20,0.30
        S2,2019-06-01,QURU,northern red oak,14.0,0.22,0.25,0.35
        S3,2019-06-02,ACRU,red maple,,0.32,0.40,0.10
        S4,2019-06-02,FAGR,American beech,10.0,0.17,0.18,0.19
        """,
    )
    config = tmp_path / "conf" / "run.yaml"
    config.parent.mkdir()
    config.write_text(
        """
inputs:
  model_coefficients: ../data/coefs.csv
  ensemble_coefficients: ../data/jackknife.csv
  spectra: ../data/spectra.csv
prediction:
  spectra_window: {start: 1500, end: 1502}
  model_window: {start: 1500, end: 1502}
output:
  directory: ../out
log_level: WARNING
""",
        encoding="utf-8",
    )
    return config


def test_predict_writes_records_and_fit(write_csv, tmp_path: Path) -> None:
    config = _write_run(write_csv, tmp_path)
    runner = CliRunner()

    result = runner.invoke(app, ["predict", "--config", str(config)])

    assert result.exit_code == 0, _output(result)
    assert "Predicted 4 samples" in result.stdout
    frame = pd.read_csv(tmp_path / "out" / "plsr_estimated_foliar_nitrogen.csv")
    assert frame["sample_id"].tolist() == ["S1", "S2", "S3", "S4"]
    assert frame["Leaf_N_estimate"].round(6).tolist() == [0.72, 0.87, 1.52, 0.84]
    assert (frame["Leaf_N_lower"] <= frame["Leaf_N_upper"]).all()
    fit = json.loads((tmp_path / "out" / "fit_summary.json").read_text(encoding="utf-8"))
    assert fit["n"] == 3


def test_predict_command_line_overrides(write_csv, tmp_path: Path) -> None:
    config = _write_run(write_csv, tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["predict", "-c", str(config), "-o", str(tmp_path / "elsewhere"), "--back-transform", "square"],
    )

    assert result.exit_code == 0, _output(result)
    frame = pd.read_csv(tmp_path / "elsewhere" / "plsr_estimated_foliar_nitrogen.csv")
    assert abs(frame.loc[0, "Leaf_N_estimate"] - 0.72**2) < 1e-9


def test_summarize_writes_envelope(write_csv, tmp_path: Path) -> None:
    config = _write_run(write_csv, tmp_path)
    runner = CliRunner()

    result = runner.invoke(app, ["summarize", "--config", str(config)])

    assert result.exit_code == 0, _output(result)
    assert "Summarised 4 spectra over 3 wavelengths" in result.stdout
    summary = pd.read_csv(tmp_path / "out" / "spectra_summary.csv")
    assert summary["wavelength"].tolist() == [1500, 1501, 1502]
    assert "q97.5" in summary.columns


def test_predict_missing_config_exits_cleanly() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["predict", "--config", "does-not-exist.yaml"])

    assert result.exit_code == 1
    combined = _output(result)
    assert "Error:" in combined
    assert "does-not-exist.yaml" in combined
    assert "Traceback" not in combined


def test_predict_without_inputs_reports_what_is_missing(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["predict", "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "inputs" in _output(result)


def test_domain_mismatch_is_reported(write_csv, tmp_path: Path) -> None:
    config = _write_run(write_csv, tmp_path)
    write_csv(
        "data/coefs.csv",
        """
        wavelength,coefs
        (Intercept),0.5
        Wave_1500,1.0
        Wave_1501,2.0
        Wave_1503,-1.0
        """,
    )
    runner = CliRunner()

    result = runner.invoke(app, ["predict", "--config", str(config)])

    assert result.exit_code == 1
    assert "Traceback" not in _output(result)


def test_truncated_model_table_is_rejected(write_csv, tmp_path: Path) -> None:
    config = _write_run(write_csv, tmp_path)
    write_csv(
        "data/coefs.csv",
        """
        wavelength,coefs
        (Intercept),0.5
        Wave_1500,1.0
        Wave_1501,2.0
        """,
    )
    runner = CliRunner()

    result = runner.invoke(app, ["predict", "--config", str(config)])

    assert result.exit_code == 1
    combined = _output(result)
    assert "expected 3" in combined
    assert "Traceback" not in combined
    assert not (tmp_path / "out").exists()


def test_version_command_reports_version() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert re.search(r"foliar-plsr version: \d+\.\d+\.\d+", result.stdout)
