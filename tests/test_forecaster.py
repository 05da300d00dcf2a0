"""
Tests for outlier trimming, SARIMA forecasting and trend classification.
"""
import numpy as np
import pandas as pd
import pytest

from contamtrends.data.preprocessor import trim_outliers
from contamtrends.models.forecaster import (
    ForecastResult,
    SarimaForecaster,
    TrendDirection,
    classify_delta,
)
from contamtrends.utils.config import AnalysisConfig
from contamtrends.utils.exceptions import ModelFitFailure


def make_result(forecast):
    return ForecastResult(
        forecast=tuple(forecast),
        lower=tuple(v - 1 for v in forecast),
        upper=tuple(v + 1 for v in forecast),
        order=(1, 0, 0),
        seasonal_order=(0, 0, 0, 0),
        aic=0.0,
        n_observations=24,
        n_trimmed=0,
    )


def trending_series(n=20):
    return [10 + 0.5 * i + ((i * 7) % 5 - 2) * 0.3 for i in range(n)]


@pytest.mark.parametrize("forecast, expected", [
    ([10, 12, 15], TrendDirection.INCREASING),
    ([10, 8, 6], TrendDirection.DECREASING),
    ([10, 10, 10], TrendDirection.FLAT),
])
def test_trend_direction_follows_delta_sign(forecast, expected):
    result = make_result(forecast)

    assert result.trend is expected


def test_trend_delta_uses_first_and_last_step():
    assert make_result([10, 30, 15]).trend_delta == 5.0


def test_only_exact_zero_is_flat():
    assert classify_delta(1e-12) is TrendDirection.INCREASING
    assert classify_delta(-1e-12) is TrendDirection.DECREASING
    assert classify_delta(0.0) is TrendDirection.FLAT


def test_trim_outliers_drops_values_above_quantile():
    kept = trim_outliers([1, 2, 3, 4, 100], 0.99)

    assert kept.tolist() == [1.0, 2.0, 3.0, 4.0]


def test_trim_outliers_keeps_order_and_drops_missing():
    kept = trim_outliers([5, np.nan, 1, 3], 1.0)

    assert kept.tolist() == [5.0, 1.0, 3.0]


def test_forecast_has_horizon_steps(fast_config):
    result = SarimaForecaster(fast_config).forecast(trending_series())

    assert len(result.forecast) == fast_config.horizon
    assert len(result.lower) == len(result.upper) == fast_config.horizon
    assert all(lo <= f <= hi for lo, f, hi in zip(result.lower, result.forecast, result.upper))
    assert result.seasonal_order == (0, 0, 0, 0)
    assert result.trend is classify_delta(result.trend_delta)
    assert np.isfinite(result.aic)


def test_forecast_labels_future_periods(fast_config):
    periods = list(pd.period_range("2020-01", periods=20, freq="M"))

    result = SarimaForecaster(fast_config).forecast(trending_series(), periods)

    assert result.periods[0] == pd.Period("2021-09", freq="M")
    assert len(result.to_frame()) == fast_config.horizon


def test_outlier_is_removed_before_fitting(fast_config):
    values = trending_series()
    values[10] = 1000.0

    result = SarimaForecaster(fast_config).forecast(values)

    assert result.n_trimmed == 1
    assert result.n_observations == 19


def test_seasonal_terms_need_two_seasons():
    forecaster = SarimaForecaster(AnalysisConfig(max_p=0, max_d=0, max_q=0))

    assert forecaster.candidate_orders(23) == [((0, 0, 0), (0, 0, 0, 0))]
    assert len(forecaster.candidate_orders(24)) == 8


@pytest.mark.parametrize("values", [
    [],
    [1.0, 2.0, 3.0],
    [4.0] * 30,
])
def test_unusable_series_fail(values, fast_config):
    with pytest.raises(ModelFitFailure):
        SarimaForecaster(fast_config).forecast(values)
