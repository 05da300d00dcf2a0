"""Utility modules."""
from .config import (
    PROJECT_ROOT,
    DATA_RAW,
    OUTPUTS_DIR,
    AnalysisConfig,
    DEFAULT_ANALYSIS_CONFIG,
)

__all__ = [
    "PROJECT_ROOT",
    "DATA_RAW",
    "OUTPUTS_DIR",
    "AnalysisConfig",
    "DEFAULT_ANALYSIS_CONFIG",
]
