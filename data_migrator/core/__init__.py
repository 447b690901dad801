"""
Core module for the Data Migrator.

This module contains the exception hierarchy and error handling
used throughout the migration engine.
"""

from data_migrator.core.exceptions import (
    DataMigratorError,
    ConfigurationError,
    ConnectionError,
    DatabaseError,
    SchemaError,
    SchemaNotFoundError,
    MaterializationError,
    CopyError,
)
from data_migrator.core.cancellation import CancellationToken
from data_migrator.core.error_handler import (
    ErrorCategory,
    ErrorContext,
    ErrorHandler,
    ErrorInfo,
    ErrorSeverity,
    format_table_error,
    is_missing_relation_error,
)

__all__ = [
    "CancellationToken",
    "DataMigratorError",
    "ConfigurationError",
    "ConnectionError",
    "DatabaseError",
    "SchemaError",
    "SchemaNotFoundError",
    "MaterializationError",
    "CopyError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorHandler",
    "ErrorInfo",
    "ErrorSeverity",
    "format_table_error",
    "is_missing_relation_error",
]
