"""
Seasonal ARIMA forecasting for monthly contamination series.

Orders are chosen automatically by AIC over a bounded grid, in the spirit of
an auto-ARIMA search, using statsmodels' SARIMAX.
"""
import itertools
import warnings
import pandas as pd
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple
import logging

from statsmodels.tsa.statespace.sarimax import SARIMAX

from contamtrends.data.dataset import Group
from contamtrends.data.preprocessor import trim_outliers
from contamtrends.models.base import ModelBackend
from contamtrends.utils.config import AnalysisConfig, DEFAULT_ANALYSIS_CONFIG
from contamtrends.utils.exceptions import ModelFitFailure

logger = logging.getLogger(__name__)


class TrendDirection(Enum):
    """Direction of a forecast, from the sign of its trend delta."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    FLAT = "flat"


def classify_delta(delta: float) -> TrendDirection:
    """Positive → increasing, negative → decreasing, exactly zero → flat."""
    if delta > 0:
        return TrendDirection.INCREASING
    if delta < 0:
        return TrendDirection.DECREASING
    return TrendDirection.FLAT


@dataclass(frozen=True)
class ForecastResult:
    """Container for one group's forecast."""
    forecast: Tuple[float, ...]
    lower: Tuple[float, ...]
    upper: Tuple[float, ...]
    order: Tuple[int, int, int]
    seasonal_order: Tuple[int, int, int, int]
    aic: float
    n_observations: int
    n_trimmed: int
    periods: Tuple[Any, ...] = ()

    @property
    def trend_delta(self) -> float:
        """Last forecast value minus the first."""
        return float(self.forecast[-1] - self.forecast[0])

    @property
    def trend(self) -> TrendDirection:
        return classify_delta(self.trend_delta)

    def to_frame(self) -> pd.DataFrame:
        """Forecast with its bounds, one row per step."""
        return pd.DataFrame({
            "period": list(self.periods) or list(range(1, len(self.forecast) + 1)),
            "forecast": self.forecast,
            "lower": self.lower,
            "upper": self.upper,
        })


class SarimaForecaster(ModelBackend):
    """
    Trims outliers, selects a SARIMA order by AIC and forecasts `horizon` steps.

    Seasonal terms are only searched when at least two full seasons of data
    remain after trimming.
    """

    name = "sarima"

    def __init__(self, config: AnalysisConfig = None):
        """
        Initialize forecaster.

        Args:
            config: Analysis configuration with horizon, outlier cut-off and
                order bounds.
        """
        self.config = config or DEFAULT_ANALYSIS_CONFIG

    def candidate_orders(self, n: int) -> List[Tuple[Tuple[int, int, int], Tuple[int, int, int, int]]]:
        """Bounded order grid for a series of length `n`."""
        cfg = self.config
        s = cfg.seasonal_period
        seasonal = n >= 2 * s and s > 1

        orders = []
        for p, d, q in itertools.product(
            range(cfg.max_p + 1), range(cfg.max_d + 1), range(cfg.max_q + 1)
        ):
            if seasonal:
                for P, D, Q in itertools.product(range(2), range(2), range(2)):
                    orders.append(((p, d, q), (P, D, Q, s)))
            else:
                orders.append(((p, d, q), (0, 0, 0, 0)))
        return orders

    def forecast(self, values: Sequence[float], periods: Sequence[Any] = None) -> ForecastResult:
        """
        Fit the best SARIMA model to `values` and forecast ahead.

        Args:
            values: Consecutive monthly values, oldest first.
            periods: Matching time buckets; used to label forecast steps.

        Returns:
            ForecastResult with point forecasts, bounds and the chosen order.
        """
        cfg = self.config
        raw = np.asarray(values, dtype=float)
        if len(raw) == 0:
            raise ModelFitFailure(self.name, "empty sequence")

        y = trim_outliers(raw, cfg.outlier_quantile)
        n_trimmed = int(np.count_nonzero(~np.isnan(raw))) - len(y)

        if len(y) < cfg.min_fit_observations:
            raise ModelFitFailure(
                self.name, f"{len(y)} observations, {cfg.min_fit_observations} required"
            )
        if np.ptp(y) == 0:
            raise ModelFitFailure(self.name, "constant sequence")

        best = None
        for order, seasonal_order in self.candidate_orders(len(y)):
            try:
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore")
                    fitted = SARIMAX(
                        y,
                        order=order,
                        seasonal_order=seasonal_order,
                        enforce_stationarity=False,
                        enforce_invertibility=False,
                    ).fit(disp=False, maxiter=100)
            except (ValueError, IndexError, np.linalg.LinAlgError) as e:
                logger.debug(f"SARIMA{order}x{seasonal_order} failed: {e}")
                continue

            if not np.isfinite(fitted.aic):
                continue
            if best is None or fitted.aic < best[0]:
                best = (fitted.aic, order, seasonal_order, fitted)

        if best is None:
            raise ModelFitFailure(self.name, "no candidate order could be fitted")

        aic, order, seasonal_order, fitted = best
        prediction = fitted.get_forecast(steps=cfg.horizon)
        mean = np.asarray(prediction.predicted_mean, dtype=float)
        bounds = np.asarray(prediction.conf_int(alpha=1 - cfg.confidence_level), dtype=float)

        if not np.all(np.isfinite(mean)):
            raise ModelFitFailure(self.name, "forecast is not finite")

        logger.debug(f"Selected SARIMA{order}x{seasonal_order} (AIC={aic:.2f}) on {len(y)} points")

        return ForecastResult(
            forecast=tuple(mean.tolist()),
            lower=tuple(bounds[:, 0].tolist()),
            upper=tuple(bounds[:, 1].tolist()),
            order=order,
            seasonal_order=seasonal_order,
            aic=float(aic),
            n_observations=len(y),
            n_trimmed=n_trimmed,
            periods=_future_periods(periods, cfg.horizon),
        )

    def analyze(self, group: Group, value_column: str) -> ForecastResult:
        return self.forecast(group.values(value_column), group.times())


def _future_periods(periods: Optional[Sequence[Any]], horizon: int) -> Tuple[Any, ...]:
    """Next `horizon` buckets after the last known one, when it is a Period."""
    if not periods:
        return ()
    last = periods[-1]
    if isinstance(last, pd.Period):
        return tuple(last + step for step in range(1, horizon + 1))
    if isinstance(last, (int, np.integer)):
        return tuple(int(last) + step for step in range(1, horizon + 1))
    return ()
