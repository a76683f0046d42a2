from __future__ import annotations

import json
import os
from collections.abc import Callable
from functools import wraps
from importlib import metadata
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import ValidationError

from .config import RunConfig, load_run_config
from .errors import FoliarError
from .pipeline import run_from_config, summarize_from_config
from .predict import BackTransform
from .utils.logging import get_logger, set_level
from .version import __version__

_DEBUG_ENV = "FOLIAR_DEBUG"

app = typer.Typer(add_completion=False, help="Predict foliar traits from leaf reflectance spectra.")
_LOG = get_logger(__name__)


def _debug_enabled() -> bool:
    return os.getenv(_DEBUG_ENV, "").lower() in {"1", "true", "yes", "on"}


def _echo_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)


def _log_cli_exception(exc: Exception, context: str) -> None:
    if _debug_enabled():
        _LOG.exception("%s", exc)
    else:
        _LOG.error("%s failed: %s", context, exc)


def handle_cli_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Provide consistent logging and user-friendly errors for CLI commands."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (typer.BadParameter, typer.Exit, KeyboardInterrupt):
            raise
        except (
            FoliarError,
            FileNotFoundError,
            OSError,
            yaml.YAMLError,
            ValidationError,
            ValueError,
            TypeError,
        ) as exc:
            _log_cli_exception(exc, func.__name__)
            _echo_error(str(exc))
        except Exception as exc:  # pragma: no cover - handled by debug path
            if _debug_enabled():
                raise
            _LOG.exception("Unexpected error while running %s: %s", func.__name__, exc)
            _echo_error(f"Unexpected error. Re-run with {_DEBUG_ENV}=1 for a traceback.")

        raise typer.Exit(code=1)

    return wrapper


def _package_version() -> str:
    try:
        return metadata.version("foliar-plsr")
    except metadata.PackageNotFoundError:
        return __version__


def _build_config(
    config: Optional[Path],
    model: Optional[Path],
    ensemble: Optional[Path],
    spectra: Optional[Path],
    out: Optional[Path],
    back_transform: Optional[BackTransform] = None,
) -> RunConfig:
    cfg = load_run_config(config) if config is not None else RunConfig()
    overrides = {
        name: value.expanduser().resolve()
        for name, value in (
            ("model_coefficients", model),
            ("ensemble_coefficients", ensemble),
            ("spectra", spectra),
        )
        if value is not None
    }
    if overrides:
        cfg = cfg.model_copy(update={"inputs": cfg.inputs.model_copy(update=overrides)})
    if out is not None:
        output = cfg.output.model_copy(update={"directory": out.expanduser().resolve()})
        cfg = cfg.model_copy(update={"output": output})
    if back_transform is not None:
        prediction = cfg.prediction.model_copy(update={"back_transform": back_transform})
        cfg = cfg.model_copy(update={"prediction": prediction})
    set_level(cfg.log_level)
    return cfg


_CONFIG_OPT = typer.Option(None, "--config", "-c", help="YAML run configuration.")
_MODEL_OPT = typer.Option(None, "--model", help="Primary PLSR coefficient CSV.")
_ENSEMBLE_OPT = typer.Option(None, "--ensemble", help="Jackknife coefficient CSV.")
_SPECTRA_OPT = typer.Option(None, "--spectra", help="Spectra + metadata CSV.")
_OUT_OPT = typer.Option(None, "--out", "-o", help="Output directory.")


@app.command("version")  # type: ignore[misc]
def version_command() -> None:
    """Print the package version."""

    typer.echo(f"foliar-plsr version: {_package_version()}")


@app.command()  # type: ignore[misc]
@handle_cli_exceptions
def predict(
    config: Optional[Path] = _CONFIG_OPT,
    model: Optional[Path] = _MODEL_OPT,
    ensemble: Optional[Path] = _ENSEMBLE_OPT,
    spectra: Optional[Path] = _SPECTRA_OPT,
    out: Optional[Path] = _OUT_OPT,
    back_transform: Optional[BackTransform] = typer.Option(
        None, "--back-transform", help="Inverse response transform applied to predictions."
    ),
) -> None:
    """Estimate the trait with jackknife intervals and write per-sample records."""

    cfg = _build_config(config, model, ensemble, spectra, out, back_transform)
    report = run_from_config(cfg)
    typer.echo(f"Predicted {len(report.results)} samples -> {cfg.output.directory}")
    if report.fit is not None:
        typer.echo(json.dumps(report.fit.as_dict()))


@app.command()  # type: ignore[misc]
@handle_cli_exceptions
def summarize(
    config: Optional[Path] = _CONFIG_OPT,
    spectra: Optional[Path] = _SPECTRA_OPT,
    out: Optional[Path] = _OUT_OPT,
) -> None:
    """Write the per-wavelength mean and quantile envelope of the spectra."""

    cfg = _build_config(config, None, None, spectra, out)
    summary = summarize_from_config(cfg)
    typer.echo(
        f"Summarised {summary.n_samples} spectra over {summary.wavelengths.size} wavelengths "
        f"-> {cfg.output.directory / cfg.output.spectral_summary_file}"
    )


if __name__ == "__main__":  # pragma: no cover
    app()
