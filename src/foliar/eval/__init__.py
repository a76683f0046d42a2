from .metrics import evaluate, paired_mask, r_squared, residuals, rmse

__all__ = ["evaluate", "paired_mask", "r_squared", "residuals", "rmse"]
