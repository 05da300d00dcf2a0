"""Data containers, loading, validation and preprocessing."""
from .schema import ColumnSpec, TableSchema
from .dataset import DataSet, Group
from .loader import DataLoader, describe_parameters
from .preprocessor import trim_outliers, yearly_totals, monthly_means, build_feature_table
from .validator import GroupValidator, DataQualityChecker, ValidationResult

__all__ = [
    "ColumnSpec",
    "TableSchema",
    "DataSet",
    "Group",
    "DataLoader",
    "describe_parameters",
    "trim_outliers",
    "yearly_totals",
    "monthly_means",
    "build_feature_table",
    "GroupValidator",
    "DataQualityChecker",
    "ValidationResult",
]
