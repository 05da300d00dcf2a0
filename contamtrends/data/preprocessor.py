"""
Data preprocessing: outlier trimming, time bucketing and feature tables.
"""
import pandas as pd
import numpy as np
from typing import List, Sequence, Tuple, Union
import logging

from contamtrends.data.dataset import DataSet
from contamtrends.data.schema import TableSchema, ColumnSpec
from contamtrends.utils.exceptions import SchemaError

logger = logging.getLogger(__name__)


def trim_outliers(values: Sequence[float], quantile: float = 0.99) -> np.ndarray:
    """
    Drop values strictly above the given quantile of the input.

    Missing values are dropped as well. The threshold uses numpy's linear
    interpolation, so ``[1, 2, 3, 4, 100]`` at 0.99 has a threshold of 96.16
    and loses the 100.

    Args:
        values: Numeric sequence in time order.
        quantile: Cut-off quantile in (0, 1].

    Returns:
        The kept values, order preserved.
    """
    x = np.asarray(values, dtype=float)
    x = x[~np.isnan(x)]
    if len(x) == 0:
        return x
    threshold = np.quantile(x, quantile)
    return x[x <= threshold]


def yearly_totals(
    dataset: DataSet,
    keys: Union[str, Sequence[str]],
    time_column: str = "year",
    value_column: str = "total_releases"
) -> DataSet:
    """
    Sum values per key and year.

    A key/year whose values are all missing stays missing rather than
    summing to zero.
    """
    keys = [keys] if isinstance(keys, str) else list(keys)
    dataset.require(*keys, time_column, value_column)

    frame = dataset.to_frame()
    totals = (
        frame.groupby(keys + [time_column], sort=True)[value_column]
        .sum(min_count=1)
        .reset_index()
    )
    schema = TableSchema(tuple(
        [dataset.schema.spec(k) if k in dataset.schema else ColumnSpec(k, "str") for k in keys]
        + [ColumnSpec(time_column, "int", nullable=False), ColumnSpec(value_column, "float")]
    ))
    logger.info(f"Aggregated {len(frame)} rows into {len(totals)} yearly totals")
    return DataSet(totals, schema)


def monthly_means(
    dataset: DataSet,
    keys: Union[str, Sequence[str]],
    date_column: str = "sample_date",
    value_column: str = "result_value",
    period_column: str = "period"
) -> DataSet:
    """
    Average values per key and calendar month.

    Each key gets a consecutive run of months from its first to its last
    sample; months without samples are linearly interpolated so forecasting
    sees evenly spaced buckets.
    """
    keys = [keys] if isinstance(keys, str) else list(keys)
    dataset.require(*keys, date_column, value_column)

    frame = dataset.to_frame()
    frame = frame.dropna(subset=[value_column])
    frame[period_column] = pd.to_datetime(frame[date_column]).dt.to_period("M")

    means = frame.groupby(keys + [period_column], sort=True)[value_column].mean()

    parts = []
    for key, series in means.groupby(level=list(range(len(keys))), sort=True):
        series = series.droplevel(list(range(len(keys))))
        full_range = pd.period_range(series.index.min(), series.index.max(), freq="M")
        series = series.reindex(full_range).interpolate(method="linear")
        part = series.rename(value_column).rename_axis(period_column).reset_index()
        key = key if isinstance(key, tuple) else (key,)
        for name, value in zip(keys, key):
            part[name] = value
        parts.append(part)

    if parts:
        result = pd.concat(parts, ignore_index=True)[keys + [period_column, value_column]]
    else:
        result = pd.DataFrame(columns=keys + [period_column, value_column])
        result[period_column] = pd.Series(dtype="period[M]")

    schema = TableSchema(tuple(
        [dataset.schema.spec(k) if k in dataset.schema else ColumnSpec(k, "str") for k in keys]
        + [ColumnSpec(period_column, "period", nullable=False), ColumnSpec(value_column, "float")]
    ))
    return DataSet(result, schema)


def build_feature_table(
    frame: pd.DataFrame,
    feature_columns: List[str],
    target_column: str
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Numeric feature matrix and target for tree ensembles.

    Boolean flags become 0/1, text columns are one-hot encoded, and rows with
    a missing target are dropped. Remaining missing feature values are 0.

    Returns:
        (features, target) aligned on the same index.
    """
    missing = [c for c in feature_columns + [target_column] if c not in frame.columns]
    if missing:
        raise SchemaError(missing[0], "column is missing", list(frame.columns))

    df = frame[feature_columns + [target_column]].dropna(subset=[target_column])

    features = pd.DataFrame(index=df.index)
    for col in feature_columns:
        series = df[col]
        if pd.api.types.is_bool_dtype(series):
            features[col] = series.astype(float).fillna(0.0)
        elif pd.api.types.is_numeric_dtype(series):
            features[col] = series.astype(float).fillna(0.0)
        else:
            dummies = pd.get_dummies(series.astype("string"), prefix=col, dtype=float)
            features = features.join(dummies)

    return features, df[target_column].astype(float)
