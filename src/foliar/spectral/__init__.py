from .summary import DEFAULT_PROBS, SpectralSummary, summarize_spectra

__all__ = ["DEFAULT_PROBS", "SpectralSummary", "summarize_spectra"]
