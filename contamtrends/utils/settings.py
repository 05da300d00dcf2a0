"""
Environment-based settings management.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

from contamtrends.utils.config import AnalysisConfig

# Load .env file from project root
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = None, cast: type = str) -> any:
    """Get environment variable with type casting."""
    value = os.getenv(key, default)
    if value is None:
        return None

    if cast == bool:
        return value.lower() in ("true", "1", "yes", "on")
    elif cast == int:
        return int(value)
    elif cast == float:
        return float(value)
    return value


@dataclass
class AppSettings:
    """Application settings loaded from environment."""

    # Paths
    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent.parent)
    data_raw_path: Path = None
    outputs_path: Path = None
    logs_path: Path = None

    # Analysis defaults
    min_count: int = 3
    max_changepoints: int = 3
    forecast_horizon: int = 36
    outlier_quantile: float = 0.99
    random_seed: int = 42
    state: str = "IL"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_to_file: bool = False

    def __post_init__(self):
        """Initialize paths after dataclass creation."""
        if self.data_raw_path is None:
            self.data_raw_path = self.project_root / "data" / "raw"
        if self.outputs_path is None:
            self.outputs_path = self.project_root / "outputs"
        if self.logs_path is None:
            self.logs_path = self.project_root / "logs"

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Create settings from environment variables."""
        project_root = Path(__file__).parent.parent.parent

        return cls(
            project_root=project_root,
            data_raw_path=project_root / get_env("DATA_RAW_PATH", "data/raw"),
            outputs_path=project_root / get_env("OUTPUTS_PATH", "outputs"),
            logs_path=project_root / get_env("LOGS_PATH", "logs"),

            min_count=get_env("MIN_COUNT", "3", int),
            max_changepoints=get_env("MAX_CHANGEPOINTS", "3", int),
            forecast_horizon=get_env("FORECAST_HORIZON", "36", int),
            outlier_quantile=get_env("OUTLIER_QUANTILE", "0.99", float),
            random_seed=get_env("RANDOM_SEED", "42", int),
            state=get_env("TRI_STATE", "IL"),

            log_level=get_env("LOG_LEVEL", "INFO"),
            log_format=get_env("LOG_FORMAT", "text"),
            log_to_file=get_env("LOG_TO_FILE", "false", bool),
        )

    def to_analysis_config(self) -> AnalysisConfig:
        """Build the analysis configuration from these settings."""
        return AnalysisConfig(
            min_count=self.min_count,
            max_changepoints=self.max_changepoints,
            horizon=self.forecast_horizon,
            outlier_quantile=self.outlier_quantile,
            random_seed=self.random_seed,
        )


@lru_cache()
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings.from_env()
