"""Model backends for per-group analysis."""
from .base import ModelBackend, GroupResult, SkipReason
from .changepoint import ChangePointDetector, ChangePointResult
from .forecaster import SarimaForecaster, ForecastResult, TrendDirection
from .importance import ImportanceEstimator, ImportanceResult

__all__ = [
    "ModelBackend",
    "GroupResult",
    "SkipReason",
    "ChangePointDetector",
    "ChangePointResult",
    "SarimaForecaster",
    "ForecastResult",
    "TrendDirection",
    "ImportanceEstimator",
    "ImportanceResult",
]
