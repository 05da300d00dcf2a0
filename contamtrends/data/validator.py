"""
Data validation module.

GroupValidator decides whether a group can be modelled; DataQualityChecker
reports issues in a loaded table before any grouping happens.
"""
import pandas as pd
import numpy as np
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any
from enum import Enum

from contamtrends.data.dataset import DataSet, Group
from contamtrends.models.base import SkipReason
from contamtrends.utils.exceptions import InsufficientObservationsError, MissingValuesError


class GroupValidator:
    """
    Checks whether a group has enough complete observations for a backend.

    A group is valid when it holds at least ``min_count`` observations and its
    value column contains no missing entries. With ``search_space_required``
    set (change-point detection), the search space ``count - 1`` must also be
    at least 1.
    """

    def __init__(
        self,
        value_column: str,
        min_count: int = 3,
        search_space_required: bool = False
    ):
        self.value_column = value_column
        self.min_count = min_count
        self.search_space_required = search_space_required

    @staticmethod
    def max_search_points(group: Group) -> int:
        """Largest number of change points the group can support."""
        return len(group) - 1

    def check(self, group: Group, min_count: int = None) -> Optional[SkipReason]:
        """Return why `group` cannot be modelled, or None if it can."""
        min_count = self.min_count if min_count is None else min_count
        if len(group) < min_count:
            return SkipReason.INSUFFICIENT_OBSERVATIONS
        if self.search_space_required and self.max_search_points(group) < 1:
            return SkipReason.INSUFFICIENT_OBSERVATIONS
        if np.isnan(group.values(self.value_column)).any():
            return SkipReason.MISSING_VALUES
        return None

    def is_valid(self, group: Group, min_count: int = None) -> bool:
        return self.check(group, min_count) is None

    def ensure_valid(self, group: Group, min_count: int = None) -> None:
        """Raise the matching GroupSkipError when `group` is not valid."""
        reason = self.check(group, min_count)
        if reason is SkipReason.INSUFFICIENT_OBSERVATIONS:
            required = self.min_count if min_count is None else min_count
            if self.search_space_required:
                required = max(required, 2)
            raise InsufficientObservationsError(group.key, len(group), required)
        if reason is SkipReason.MISSING_VALUES:
            missing = int(np.isnan(group.values(self.value_column)).sum())
            raise MissingValuesError(group.key, missing)


# ===========================================
# Table-level quality checks
# ===========================================

class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Data cannot be used
    WARNING = "warning"  # Data can be used but may have issues
    INFO = "info"        # Informational message


@dataclass
class ValidationIssue:
    """A single validation issue."""
    severity: ValidationSeverity
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    affected_rows: List[int] = field(default_factory=list)

    def __str__(self):
        return f"[{self.severity.value.upper()}] {self.message}"


@dataclass
class ValidationResult:
    """Result of a validation check."""
    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def add_issue(
        self,
        severity: ValidationSeverity,
        code: str,
        message: str,
        details: Dict = None,
        affected_rows: List[int] = None
    ):
        """Add a validation issue."""
        self.issues.append(ValidationIssue(
            severity=severity,
            code=code,
            message=message,
            details=details or {},
            affected_rows=affected_rows or []
        ))

        if severity == ValidationSeverity.ERROR:
            self.is_valid = False


class DataQualityChecker:
    """
    Reports nulls, negative values and duplicate rows in a DataSet.
    """

    def __init__(self, value_columns: List[str], key_columns: List[str] = None):
        self.value_columns = value_columns
        self.key_columns = key_columns or []

    def check(self, dataset: DataSet) -> ValidationResult:
        result = ValidationResult(is_valid=True)

        if len(dataset) == 0:
            result.add_issue(ValidationSeverity.ERROR, "DATA_EMPTY", "The provided data is empty")
            return result

        dataset.require(*self.value_columns, *self.key_columns)
        data = dataset.to_frame()

        for col in self.value_columns:
            values = data[col]

            null_mask = values.isna()
            if null_mask.any():
                null_count = int(null_mask.sum())
                null_pct = (null_count / len(values)) * 100
                severity = (ValidationSeverity.ERROR if null_pct > 50
                            else ValidationSeverity.WARNING if null_pct > 10
                            else ValidationSeverity.INFO)
                result.add_issue(
                    severity,
                    f"NULL_VALUES_{col.upper()}",
                    f"Found {null_count} ({null_pct:.1f}%) null values in '{col}'",
                    affected_rows=data[null_mask].index.tolist()[:10]
                )

            neg_mask = values < 0
            if neg_mask.any():
                result.add_issue(
                    ValidationSeverity.ERROR,
                    f"NEGATIVE_VALUES_{col.upper()}",
                    f"Found {int(neg_mask.sum())} negative values in '{col}' (amounts cannot be negative)",
                    affected_rows=data[neg_mask].index.tolist()[:10]
                )

        if self.key_columns:
            duplicates = data.duplicated(subset=self.key_columns, keep="first")
            if duplicates.any():
                result.add_issue(
                    ValidationSeverity.WARNING,
                    "DUPLICATE_KEYS",
                    f"Found {int(duplicates.sum())} rows repeating key {self.key_columns}",
                    affected_rows=data[duplicates].index.tolist()[:10]
                )

        result.summary = {
            "total_rows": len(data),
            "columns": list(data.columns),
            "error_count": len(result.errors),
            "warning_count": len(result.warnings),
            "statistics": {
                col: {
                    "mean": float(data[col].mean()) if not data[col].isna().all() else None,
                    "min": float(data[col].min()) if not data[col].isna().all() else None,
                    "max": float(data[col].max()) if not data[col].isna().all() else None,
                }
                for col in self.value_columns
            },
        }
        return result
