"""
Custom exceptions for the contamination trend analysis.
Provides structured error handling with user-friendly messages.
"""
from typing import Dict, Any, List


class ContamTrendsError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        user_message: str = None
    ):
        self.message = message
        self.error_code = error_code or "UNKNOWN_ERROR"
        self.details = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details
        }


# ===========================================
# Data Errors
# ===========================================

class DataError(ContamTrendsError):
    """Data related errors."""
    pass


class SchemaError(DataError):
    """A referenced column is absent or cannot hold its declared type."""

    def __init__(self, column: str, reason: str = None, available: List[str] = None):
        self.column = column
        super().__init__(
            message=f"Schema error for column '{column}': {reason or 'column is missing'}",
            error_code="SCHEMA_ERROR",
            user_message=f"The data does not match the expected layout ({column}).",
            details={"column": column, "reason": reason, "available": available or []}
        )


class DataLoadError(DataError):
    """Error loading data from file."""

    def __init__(self, filepath: str, reason: str = None):
        super().__init__(
            message=f"Failed to load data from: {filepath}",
            error_code="DATA_LOAD_ERROR",
            user_message=f"Could not load the data file. {reason or 'Please check the file format.'}",
            details={"filepath": str(filepath), "reason": reason}
        )


# ===========================================
# Group Errors
# ===========================================

class GroupSkipError(ContamTrendsError):
    """A group cannot be modelled; the run records it as skipped."""
    pass


class InsufficientObservationsError(GroupSkipError):
    """Group has too few observations for the requested model."""

    def __init__(self, group_key: tuple, count: int, required: int):
        super().__init__(
            message=f"Group {group_key} has {count} observations, {required} required",
            error_code="GROUP_INSUFFICIENT_OBSERVATIONS",
            details={"group": list(group_key), "count": count, "required": required}
        )


class MissingValuesError(GroupSkipError):
    """Group contains observations without a numeric value."""

    def __init__(self, group_key: tuple, missing: int):
        super().__init__(
            message=f"Group {group_key} has {missing} missing values",
            error_code="GROUP_MISSING_VALUES",
            details={"group": list(group_key), "missing": missing}
        )


# ===========================================
# Model Errors
# ===========================================

class ModelError(ContamTrendsError):
    """Model related errors."""
    pass


class ModelFitFailure(ModelError):
    """A backend could not fit its model to the given input."""

    def __init__(self, backend: str, reason: str = None):
        self.backend = backend
        self.reason = reason
        super().__init__(
            message=f"{backend} fit failed: {reason}",
            error_code="MODEL_FIT_FAILURE",
            user_message=f"The model could not be fitted. {reason or ''}".strip(),
            details={"backend": backend, "reason": reason}
        )


# ===========================================
# Configuration Errors
# ===========================================

class ConfigurationError(ContamTrendsError):
    """Configuration related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Invalid configuration value."""

    def __init__(self, config_key: str, value: Any = None, reason: str = None):
        super().__init__(
            message=f"Invalid configuration: {config_key}",
            error_code="CONFIG_INVALID",
            user_message=f"Invalid configuration value for {config_key}. {reason or ''}",
            details={"config_key": config_key, "value": str(value), "reason": reason}
        )


# ===========================================
# Export Errors
# ===========================================

class ExportError(ContamTrendsError):
    """Export related errors."""
    pass


class ExportFormatError(ExportError):
    """Unsupported export format."""

    def __init__(self, format: str, supported_formats: list = None):
        super().__init__(
            message=f"Unsupported export format: {format}",
            error_code="EXPORT_FORMAT_ERROR",
            user_message=f"Export format '{format}' is not supported.",
            details={"format": format, "supported_formats": supported_formats or ["xlsx", "csv"]}
        )
