"""
Typed column schemas for the analysis tables.

Every DataSet carries a TableSchema. Columns are coerced to their declared
type when the DataSet is built, and a missing or mistyped column fails
immediately with a SchemaError.
"""
import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from contamtrends.utils.exceptions import SchemaError

SUPPORTED_DTYPES = ("int", "float", "str", "bool", "period", "datetime")

TRUE_VALUES = {"y", "yes", "true", "t", "1"}
FALSE_VALUES = {"n", "no", "false", "f", "0"}


@dataclass(frozen=True)
class ColumnSpec:
    """A single typed column."""
    name: str
    dtype: str
    nullable: bool = True

    def __post_init__(self):
        if self.dtype not in SUPPORTED_DTYPES:
            raise ValueError(f"Unsupported column type '{self.dtype}' for {self.name}")


@dataclass(frozen=True)
class TableSchema:
    """Ordered collection of column specs."""
    columns: Tuple[ColumnSpec, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, **dtypes: str) -> "TableSchema":
        """Shorthand: ``TableSchema.of(county="str", year="int")``."""
        return cls(tuple(ColumnSpec(name, dtype) for name, dtype in dtypes.items()))

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    def spec(self, name: str) -> ColumnSpec:
        for column in self.columns:
            if column.name == name:
                return column
        raise SchemaError(name, "not declared in schema", self.names)

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def merge(self, other: "TableSchema") -> "TableSchema":
        """Union of two schemas; columns only in `other` become nullable."""
        merged: Dict[str, ColumnSpec] = {c.name: c for c in self.columns}
        for column in other.columns:
            if column.name not in merged:
                merged[column.name] = ColumnSpec(column.name, column.dtype, nullable=True)
        return TableSchema(tuple(merged.values()))

    def subset(self, names: List[str]) -> "TableSchema":
        return TableSchema(tuple(c for c in self.columns if c.name in names))

    def validate(self, frame: pd.DataFrame) -> pd.DataFrame:
        """
        Check and coerce a frame against this schema.

        Args:
            frame: Raw frame; extra columns are passed through untouched.

        Returns:
            A copy of the frame with declared columns coerced.
        """
        missing = [name for name in self.names if name not in frame.columns]
        if missing:
            raise SchemaError(missing[0], "column is missing", list(frame.columns))

        df = frame.copy()
        for column in self.columns:
            df[column.name] = _coerce(df[column.name], column)
            if not column.nullable and df[column.name].isna().any():
                raise SchemaError(column.name, "null values in a non-nullable column")
        return df


def _is_text(series: pd.Series) -> bool:
    """Object columns and the dedicated string dtype both hold raw text."""
    return pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series)


def _coerce(series: pd.Series, column: ColumnSpec) -> pd.Series:
    """Coerce one column, failing if non-null values do not fit the type."""
    if _is_text(series):
        series = series.map(lambda v: v.strip() if isinstance(v, str) else v)
        series = series.mask(series == "")
    present = series.notna()

    if column.dtype in ("int", "float"):
        if _is_text(series):
            # thousands separators, e.g. "1,250.5"
            series = series.map(lambda v: v.replace(",", "") if isinstance(v, str) else v)
        converted = pd.to_numeric(series, errors="coerce")
        _check_lost(series, present, converted, column, "numeric")
        if column.dtype == "int":
            fractional = converted.notna() & (converted % 1 != 0)
            if fractional.any():
                raise SchemaError(column.name, "non-integer values in an integer column")
            return converted.astype("Int64")
        return converted.astype(float)

    if column.dtype == "str":
        return series.where(~present, series.astype(str).str.strip()).astype(object)

    if column.dtype == "bool":
        if pd.api.types.is_bool_dtype(series):
            return series.astype("boolean")
        lowered = series.astype(str).str.strip().str.lower()
        converted = pd.Series(pd.NA, index=series.index, dtype="boolean")
        converted[present & lowered.isin(TRUE_VALUES)] = True
        converted[present & lowered.isin(FALSE_VALUES)] = False
        _check_lost(series, present, converted, column, "boolean")
        return converted

    if column.dtype == "period":
        if isinstance(series.dtype, pd.PeriodDtype):
            return series
        converted = pd.to_datetime(series, errors="coerce")
        _check_lost(series, present, converted, column, "monthly period")
        return converted.dt.to_period("M")

    # datetime
    converted = pd.to_datetime(series, errors="coerce")
    _check_lost(series, present, converted, column, "datetime")
    return converted


def _check_lost(original, present, converted, column, kind):
    lost = present & converted.isna()
    if lost.any():
        example = original[lost].iloc[0]
        raise SchemaError(column.name, f"value {example!r} is not {kind}")


# ===========================================
# Schemas of the cleaned input tables
# ===========================================

RELEASE_SCHEMA = TableSchema((
    ColumnSpec("year", "int", nullable=False),
    ColumnSpec("county", "str", nullable=False),
    ColumnSpec("chemical", "str", nullable=False),
    ColumnSpec("total_releases", "float"),
    ColumnSpec("carcinogen", "bool"),
    ColumnSpec("clean_air_act_chemical", "bool"),
    ColumnSpec("industry_sector", "str"),
))

SAMPLE_SCHEMA = TableSchema((
    ColumnSpec("site_id", "str", nullable=False),
    ColumnSpec("sample_date", "datetime", nullable=False),
    ColumnSpec("parameter_code", "str", nullable=False),
    ColumnSpec("result_value", "float"),
))

PARAMETER_CODE_SCHEMA = TableSchema((
    ColumnSpec("parameter_code", "str", nullable=False),
    ColumnSpec("parameter_name", "str"),
))
