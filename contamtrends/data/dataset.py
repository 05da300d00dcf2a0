"""
In-memory typed table used by the analysis pipeline.

A DataSet wraps a pandas DataFrame together with its TableSchema. The schema
is validated once on construction; every operation returns a new DataSet and
never mutates the wrapped frame.
"""
import pandas as pd
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from contamtrends.data.schema import TableSchema, ColumnSpec
from contamtrends.utils.exceptions import SchemaError


@dataclass(frozen=True)
class Group:
    """Observations sharing identical grouping key values, sorted by time."""
    key: Tuple[Any, ...]
    keys: Tuple[str, ...]
    frame: pd.DataFrame = field(repr=False, compare=False)
    time_column: Optional[str] = None

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def label(self) -> Dict[str, Any]:
        """Key values by column name."""
        return dict(zip(self.keys, self.key))

    def values(self, column: str) -> np.ndarray:
        """Numeric values of `column` as a float array, in time order."""
        return self.frame[column].to_numpy(dtype=float, na_value=np.nan)

    def times(self) -> List[Any]:
        """Time index values in order."""
        if self.time_column is None:
            return list(range(len(self.frame)))
        return self.frame[self.time_column].tolist()

    def series(self, column: str) -> pd.Series:
        """`column` indexed by the time column."""
        values = self.frame[column].astype(float)
        if self.time_column is None:
            return values.reset_index(drop=True)
        return pd.Series(values.to_numpy(), index=self.frame[self.time_column].to_numpy(), name=column)


class DataSet:
    """
    Immutable typed table supporting group-by, filter, join and sorted iteration.
    """

    def __init__(self, frame: pd.DataFrame, schema: TableSchema = None):
        """
        Build a DataSet, validating and coercing `frame` against `schema`.

        Args:
            frame: Source data. It is copied, never referenced.
            schema: Column types. Defaults to inferring from the frame dtypes.
        """
        self.schema = schema or infer_schema(frame)
        self._frame = self.schema.validate(frame).reset_index(drop=True)

    @classmethod
    def _trusted(cls, frame: pd.DataFrame, schema: TableSchema) -> "DataSet":
        """Wrap an already validated frame without re-coercing it."""
        dataset = cls.__new__(cls)
        dataset.schema = schema
        dataset._frame = frame.reset_index(drop=True)
        return dataset

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f"DataSet(rows={len(self)}, columns={self.columns})"

    @property
    def columns(self) -> List[str]:
        return list(self._frame.columns)

    def require(self, *names: str) -> None:
        """Raise SchemaError unless every name is a column."""
        for name in names:
            if name not in self._frame.columns:
                raise SchemaError(name, "column is missing", self.columns)

    def column(self, name: str) -> pd.Series:
        self.require(name)
        return self._frame[name].copy()

    def to_frame(self) -> pd.DataFrame:
        """Copy of the underlying data."""
        return self._frame.copy()

    def group_by(
        self,
        keys: Union[str, Sequence[str]],
        time_column: str = None
    ) -> List[Group]:
        """
        Partition rows by key columns.

        Args:
            keys: Column name or names identifying a group.
            time_column: Column each group is sorted by (ascending).

        Returns:
            Groups ordered by key.
        """
        keys = (keys,) if isinstance(keys, str) else tuple(keys)
        self.require(*keys)
        if time_column is not None:
            self.require(time_column)

        groups = []
        for key, frame in self._frame.groupby(list(keys), sort=True, dropna=False):
            key = key if isinstance(key, tuple) else (key,)
            if time_column is not None:
                frame = frame.sort_values(time_column, kind="mergesort")
            groups.append(Group(
                key=tuple(_plain(k) for k in key),
                keys=keys,
                frame=frame.reset_index(drop=True),
                time_column=time_column,
            ))
        return groups

    def filter(self, predicate: Callable[[pd.DataFrame], pd.Series]) -> "DataSet":
        """Keep rows for which `predicate(frame)` is True."""
        mask = predicate(self._frame)
        if not isinstance(mask, pd.Series) or len(mask) != len(self._frame):
            raise ValueError("predicate must return a boolean Series aligned with the rows")
        return DataSet._trusted(self._frame[mask.fillna(False).astype(bool)], self.schema)

    def where(self, **equals: Any) -> "DataSet":
        """Rows whose columns equal the given values."""
        self.require(*equals)

        def predicate(df):
            mask = pd.Series(True, index=df.index)
            for name, value in equals.items():
                mask &= df[name] == value
            return mask

        return self.filter(predicate)

    def join(self, other: "DataSet", on: Union[str, Sequence[str]]) -> "DataSet":
        """
        Left-join `other` onto this DataSet.

        Rows without a match keep their values and get nulls in the joined
        columns. Overlapping non-key columns are suffixed with ``_right``.
        """
        on = [on] if isinstance(on, str) else list(on)
        self.require(*on)
        other.require(*on)

        joined = self._frame.merge(
            other._frame, how="left", on=on, suffixes=("", "_right"), sort=False
        )
        right_schema = TableSchema(tuple(
            ColumnSpec(f"{c.name}_right" if c.name in self.columns and c.name not in on else c.name, c.dtype)
            for c in other.schema.columns
        ))
        return DataSet._trusted(joined, self.schema.merge(right_schema))

    def select(self, *names: str) -> "DataSet":
        self.require(*names)
        return DataSet._trusted(self._frame[list(names)], self.schema.subset(list(names)))

    def iter_rows(self, sort_by: Union[str, Sequence[str]] = None) -> Iterator[Dict[str, Any]]:
        """Iterate over rows as dictionaries, optionally sorted."""
        frame = self._frame
        if sort_by is not None:
            sort_by = [sort_by] if isinstance(sort_by, str) else list(sort_by)
            self.require(*sort_by)
            frame = frame.sort_values(sort_by, kind="mergesort")
        for record in frame.to_dict(orient="records"):
            yield {k: _plain(v) for k, v in record.items()}


def infer_schema(frame: pd.DataFrame) -> TableSchema:
    """Derive a schema from pandas dtypes."""
    columns = []
    for name, dtype in frame.dtypes.items():
        if pd.api.types.is_bool_dtype(dtype):
            kind = "bool"
        elif pd.api.types.is_integer_dtype(dtype):
            kind = "int"
        elif pd.api.types.is_float_dtype(dtype):
            kind = "float"
        elif isinstance(dtype, pd.PeriodDtype):
            kind = "period"
        elif pd.api.types.is_datetime64_any_dtype(dtype):
            kind = "datetime"
        else:
            kind = "str"
        columns.append(ColumnSpec(str(name), kind))
    return TableSchema(tuple(columns))


def _plain(value: Any) -> Any:
    """Unwrap numpy scalars and pandas NA so keys compare and hash cleanly."""
    if value is pd.NA or (isinstance(value, float) and np.isnan(value)):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value
