"""
Plotly figures for change points and forecasts.

Functions return figure objects only; showing or saving them is up to the
caller.
"""
import pandas as pd
import plotly.graph_objects as go
from typing import Any, List

from contamtrends.data.dataset import Group
from contamtrends.models.changepoint import ChangePointResult
from contamtrends.models.forecaster import ForecastResult


def _axis_values(values: List[Any]) -> List[Any]:
    """Periods are not JSON serialisable; plot them as timestamps."""
    return [v.to_timestamp() if isinstance(v, pd.Period) else v for v in values]


def change_point_figure(group: Group, result: ChangePointResult, value_column: str) -> go.Figure:
    """
    Time series of one group with its segment means and change-point markers.
    """
    times = _axis_values(group.times())
    values = group.values(value_column)

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=times,
        y=values,
        name="Observed",
        mode="lines+markers",
        line=dict(color="#667eea", width=2)
    ))

    # Segment means as flat steps
    bounds = [0] + [p + 1 for p in result.positions] + [len(values)]
    for i, (start, end) in enumerate(zip(bounds[:-1], bounds[1:])):
        fig.add_trace(go.Scatter(
            x=times[start:end],
            y=[result.segment_means[i]] * (end - start),
            name="Segment mean",
            mode="lines",
            line=dict(color="#f5576c", width=2, dash="dash"),
            showlegend=i == 0
        ))

    for time in _axis_values(list(result.times)):
        fig.add_vline(x=time, line=dict(color="gray", dash="dot"))

    title = " / ".join(str(k) for k in group.key)
    fig.update_layout(
        title=f"{title}: {len(result.positions)} change point(s)",
        xaxis_title=group.time_column or "index",
        yaxis_title=value_column,
        height=400,
        showlegend=True
    )
    return fig


def forecast_figure(group: Group, result: ForecastResult, value_column: str) -> go.Figure:
    """
    Observed series followed by the forecast and its confidence band.
    """
    history_x = _axis_values(group.times())
    forecast_x = _axis_values(list(result.periods)) or list(
        range(len(history_x), len(history_x) + len(result.forecast))
    )

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=history_x,
        y=group.values(value_column),
        name="Observed",
        line=dict(color="#667eea", width=2)
    ))

    fig.add_trace(go.Scatter(
        x=list(forecast_x) + list(forecast_x)[::-1],
        y=list(result.upper) + list(result.lower)[::-1],
        fill="toself",
        fillcolor="rgba(245, 87, 108, 0.2)",
        line=dict(color="rgba(255,255,255,0)"),
        name="Confidence interval",
        showlegend=True
    ))

    fig.add_trace(go.Scatter(
        x=forecast_x,
        y=result.forecast,
        name="Forecast",
        line=dict(color="#f5576c", width=2)
    ))

    title = " / ".join(str(k) for k in group.key)
    fig.update_layout(
        title=f"{title}: {result.trend.value} (delta {result.trend_delta:+.3g})",
        xaxis_title=group.time_column or "step",
        yaxis_title=value_column,
        height=400,
        showlegend=True
    )
    return fig
