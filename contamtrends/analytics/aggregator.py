"""
Result aggregation.

Reduces an AnalysisRun into summary tables for reporting: change-point
frequencies, forecast trend classifications, importance rankings and the
county-level yearly delta table.
"""
import pandas as pd
import numpy as np
from collections import Counter
from typing import Any, Dict

from contamtrends.analytics.runner import AnalysisRun, status_frame
from contamtrends.data.dataset import DataSet
from contamtrends.models.changepoint import ChangePointResult
from contamtrends.models.forecaster import ForecastResult, TrendDirection, classify_delta
from contamtrends.models.importance import ImportanceResult


class ResultAggregator:
    """
    Pure reductions over AnalysisRun objects.
    """

    @staticmethod
    def aggregate_change_point_years(run: AnalysisRun) -> Dict[Any, int]:
        """
        Count how often each change-point time value occurs across groups.

        Returns:
            Time value → occurrences, ordered by time.
        """
        counter: Counter = Counter()
        for payload in run.valid().values():
            if isinstance(payload, ChangePointResult):
                counter.update(payload.times)
        return dict(sorted(counter.items()))

    @staticmethod
    def classify_trend(result: ForecastResult) -> TrendDirection:
        """Increasing/decreasing/flat from the sign of the trend delta."""
        return classify_delta(result.trend_delta)

    def change_point_frequency_table(self, run: AnalysisRun) -> pd.DataFrame:
        counts = self.aggregate_change_point_years(run)
        return pd.DataFrame(
            {run.time_column: list(counts.keys()), "count": list(counts.values())}
        )

    def change_point_table(self, run: AnalysisRun) -> pd.DataFrame:
        """One row per detected change point."""
        rows = []
        for key, payload in run.valid().items():
            if not isinstance(payload, ChangePointResult):
                continue
            for position, time in zip(payload.positions, payload.times):
                row = dict(zip(run.keys, key))
                row.update({"position": position, run.time_column: time})
                rows.append(row)
        return pd.DataFrame(rows, columns=list(run.keys) + ["position", run.time_column])

    def trend_table(self, run: AnalysisRun) -> pd.DataFrame:
        """Trend delta and direction of every forecast group."""
        rows = []
        for key, payload in run.valid().items():
            if not isinstance(payload, ForecastResult):
                continue
            row = dict(zip(run.keys, key))
            row.update({
                "first_forecast": payload.forecast[0],
                "last_forecast": payload.forecast[-1],
                "trend_delta": payload.trend_delta,
                "trend": self.classify_trend(payload).value,
                "order": str(payload.order),
                "seasonal_order": str(payload.seasonal_order),
                "aic": payload.aic,
            })
            rows.append(row)
        columns = list(run.keys) + [
            "first_forecast", "last_forecast", "trend_delta", "trend",
            "order", "seasonal_order", "aic",
        ]
        return pd.DataFrame(rows, columns=columns)

    def importance_ranking(self, run: AnalysisRun) -> pd.DataFrame:
        """Mean importance of each feature across the modelled groups."""
        frames = [
            payload.importance for payload in run.valid().values()
            if isinstance(payload, ImportanceResult)
        ]
        if not frames:
            return pd.DataFrame(columns=["feature", "importance", "groups"])
        combined = pd.concat(frames, ignore_index=True)
        ranking = (
            combined.groupby("feature")["importance"]
            .agg(importance="mean", groups="count")
            .reset_index()
            .sort_values(["importance", "feature"], ascending=[False, True])
            .reset_index(drop=True)
        )
        return ranking

    @staticmethod
    def status_table(run: AnalysisRun) -> pd.DataFrame:
        return status_frame(run)

    @staticmethod
    def average_yearly_delta(
        dataset: DataSet,
        key: str = "county",
        time_column: str = "year",
        value_column: str = "total_releases"
    ) -> pd.DataFrame:
        """
        Mean year-over-year change of the yearly totals per key.

        Keys with a single year have no delta and are left out.

        Returns:
            Frame with columns [key, "average_yearly_delta"].
        """
        dataset.require(key, time_column, value_column)
        frame = dataset.to_frame()
        totals = (
            frame.groupby([key, time_column], sort=True)[value_column]
            .sum(min_count=1)
            .reset_index()
            .sort_values([key, time_column])
        )
        totals["delta"] = totals.groupby(key)[value_column].diff()
        deltas = (
            totals.dropna(subset=["delta"])
            .groupby(key)["delta"]
            .mean()
            .rename("average_yearly_delta")
            .reset_index()
        )
        deltas["average_yearly_delta"] = deltas["average_yearly_delta"].astype(float)
        return deltas.replace([np.inf, -np.inf], np.nan)
