"""
Random-forest feature importance for release drivers.
"""
import pandas as pd
import numpy as np
from dataclasses import dataclass
from typing import List, Tuple
import logging

from sklearn.ensemble import RandomForestRegressor

from contamtrends.data.dataset import Group
from contamtrends.data.preprocessor import build_feature_table
from contamtrends.models.base import ModelBackend
from contamtrends.utils.config import AnalysisConfig, DEFAULT_ANALYSIS_CONFIG
from contamtrends.utils.exceptions import ModelFitFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportanceResult:
    """Container for feature importance results."""
    importance: pd.DataFrame  # columns: feature, importance (descending)
    r2: float                 # in-sample R² of the ensemble
    n_samples: int

    def top(self, n: int = 10) -> pd.DataFrame:
        return self.importance.head(n).reset_index(drop=True)


class ImportanceEstimator(ModelBackend):
    """
    Fits a bagged ensemble of regression trees and reports impurity-based
    feature importance. The seed is fixed so repeated runs agree.
    """

    name = "importance"

    def __init__(self, feature_columns: List[str], config: AnalysisConfig = None):
        """
        Initialize estimator.

        Args:
            feature_columns: Columns used as predictors.
            config: Analysis configuration (n_estimators, random_seed).
        """
        if not feature_columns:
            raise ValueError("At least one feature column is required")
        self.feature_columns = list(feature_columns)
        self.config = config or DEFAULT_ANALYSIS_CONFIG

    @property
    def required_columns(self) -> Tuple[str, ...]:
        return tuple(self.feature_columns)

    def _create_model(self) -> RandomForestRegressor:
        return RandomForestRegressor(
            n_estimators=self.config.n_estimators,
            random_state=self.config.random_seed,
            n_jobs=1,
        )

    def estimate(self, features: pd.DataFrame, target: pd.Series) -> ImportanceResult:
        """
        Fit the ensemble and rank features.

        Args:
            features: Fixed-width numeric feature table.
            target: Numeric target aligned with `features`.

        Returns:
            ImportanceResult sorted by importance, highest first.
        """
        if features.shape[1] == 0:
            raise ModelFitFailure(self.name, "no feature columns")
        if len(features) < 2:
            raise ModelFitFailure(self.name, f"{len(features)} rows, at least 2 required")

        y = np.asarray(target, dtype=float)
        if np.isnan(y).any():
            raise ModelFitFailure(self.name, "target contains missing values")
        if np.ptp(y) == 0:
            raise ModelFitFailure(self.name, "constant target")

        X = features.astype(float)
        model = self._create_model()
        model.fit(X, y)

        importance = pd.DataFrame({
            "feature": list(X.columns),
            "importance": model.feature_importances_,
        }).sort_values(["importance", "feature"], ascending=[False, True]).reset_index(drop=True)

        r2 = float(model.score(X, y))
        logger.debug(f"Fitted {self.config.n_estimators} trees on {len(X)} rows (R²={r2:.3f})")

        return ImportanceResult(importance=importance, r2=r2, n_samples=len(X))

    def analyze(self, group: Group, value_column: str) -> ImportanceResult:
        features, target = build_feature_table(group.frame, self.feature_columns, value_column)
        return self.estimate(features, target)
