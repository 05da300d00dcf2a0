"""
Configuration and constants for the contamination trend analysis.
"""
from pathlib import Path
from dataclasses import dataclass

from contamtrends.utils.exceptions import InvalidConfigurationError

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_RAW = PROJECT_ROOT / "data" / "raw"
OUTPUTS_DIR = PROJECT_ROOT / "outputs"

CHANGEPOINT_PENALTIES = ("MBIC", "BIC")


@dataclass(frozen=True)
class AnalysisConfig:
    """Knobs shared by the validator, the runner and the model backends."""
    # Group validation
    min_count: int = 3

    # Change-point detection
    max_changepoints: int = 3
    changepoint_penalty: str = "MBIC"

    # Forecasting (monthly buckets)
    horizon: int = 36
    outlier_quantile: float = 0.99
    seasonal_period: int = 12
    max_p: int = 2
    max_d: int = 1
    max_q: int = 2
    min_fit_observations: int = 8
    confidence_level: float = 0.95

    # Feature importance
    random_seed: int = 42
    n_estimators: int = 500

    def __post_init__(self):
        if self.min_count < 1:
            raise InvalidConfigurationError("min_count", self.min_count, "must be at least 1")
        if self.max_changepoints < 0:
            raise InvalidConfigurationError("max_changepoints", self.max_changepoints, "must not be negative")
        if self.changepoint_penalty not in CHANGEPOINT_PENALTIES:
            raise InvalidConfigurationError(
                "changepoint_penalty", self.changepoint_penalty,
                f"expected one of {CHANGEPOINT_PENALTIES}"
            )
        if self.horizon < 1:
            raise InvalidConfigurationError("horizon", self.horizon, "must be at least 1")
        if not 0 < self.outlier_quantile <= 1:
            raise InvalidConfigurationError("outlier_quantile", self.outlier_quantile, "must be in (0, 1]")
        if not 0 < self.confidence_level < 1:
            raise InvalidConfigurationError("confidence_level", self.confidence_level, "must be in (0, 1)")
        if self.n_estimators < 1:
            raise InvalidConfigurationError("n_estimators", self.n_estimators, "must be at least 1")


# Default configuration
DEFAULT_ANALYSIS_CONFIG = AnalysisConfig()

# TRI records are filtered to this state unless told otherwise
DEFAULT_STATE = "IL"
