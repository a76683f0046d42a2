from .validators import check_ensemble_domain, check_model_coverage, check_spectra_health

__all__ = ["check_ensemble_domain", "check_model_coverage", "check_spectra_health"]
