"""
Error handling for the Data Migrator.

This module provides centralized error categorization and logging for
table-level and run-level failures. Nothing is retried: a failed table is
reported and the run moves on to the next one.
"""

import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Type

from .exceptions import (
    DataMigratorError,
    ConfigurationError,
    ConnectionError,
    DatabaseError,
    SchemaError,
    SchemaNotFoundError,
    MaterializationError,
    CopyError,
)


MISSING_RELATION_MARKER = "does not exist"


class ErrorCategory(str, Enum):
    """Categories of errors for better handling and reporting."""
    CONFIGURATION = "configuration"
    CONNECTIVITY = "connectivity"
    SCHEMA = "schema"
    MATERIALIZATION = "materialization"
    COPY = "copy"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Context information for an error occurrence."""
    timestamp: datetime = field(default_factory=datetime.now)
    operation: Optional[str] = None
    table_name: Optional[str] = None
    run_id: Optional[str] = None
    additional_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ErrorInfo:
    """Comprehensive error information."""
    error: Exception
    category: ErrorCategory
    severity: ErrorSeverity
    context: ErrorContext
    traceback_str: str

    @property
    def message(self) -> str:
        return str(self.error)


def is_missing_relation_error(error: Exception) -> bool:
    """Whether the driver reported a relation that does not exist."""
    return MISSING_RELATION_MARKER in str(error)


def format_table_error(table_name: str, error: Exception) -> str:
    """Render a table-level error the way it is stored in results."""
    return f"Failed to migrate table {table_name}: {error}"


class ErrorHandler:
    """
    Error handler with categorization and severity-based logging.
    """

    # Stage names used by the table orchestrator, mapped to categories for
    # driver exceptions that carry no type information of their own.
    STAGE_CATEGORIES = {
        "schema_discovery": ErrorCategory.SCHEMA,
        "policy_application": ErrorCategory.MATERIALIZATION,
        "materialization": ErrorCategory.MATERIALIZATION,
        "data_copy": ErrorCategory.COPY,
    }

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._error_mappings = self._build_error_mappings()

    def _build_error_mappings(self) -> Dict[Type[Exception], Dict[str, Any]]:
        """Category and severity per exception type."""
        return {
            ConfigurationError: {
                "category": ErrorCategory.CONFIGURATION,
                "severity": ErrorSeverity.HIGH,
            },
            ConnectionError: {
                "category": ErrorCategory.CONNECTIVITY,
                "severity": ErrorSeverity.HIGH,
            },
            SchemaNotFoundError: {
                "category": ErrorCategory.SCHEMA,
                "severity": ErrorSeverity.MEDIUM,
            },
            SchemaError: {
                "category": ErrorCategory.SCHEMA,
                "severity": ErrorSeverity.HIGH,
            },
            MaterializationError: {
                "category": ErrorCategory.MATERIALIZATION,
                "severity": ErrorSeverity.HIGH,
            },
            CopyError: {
                "category": ErrorCategory.COPY,
                "severity": ErrorSeverity.HIGH,
            },
            DatabaseError: {
                "category": ErrorCategory.UNKNOWN,
                "severity": ErrorSeverity.HIGH,
            },
            TimeoutError: {
                "category": ErrorCategory.CONNECTIVITY,
                "severity": ErrorSeverity.MEDIUM,
            },
        }

    def categorize_error(self, error: Exception, context: Optional[ErrorContext] = None) -> ErrorInfo:
        """
        Classify an exception raised while migrating.

        Exact type matches win over base classes. Driver exceptions with no
        mapping fall back to the category of the stage that raised them.

        Args:
            error: The exception to classify
            context: Where it happened (stage, table, run)

        Returns:
            ErrorInfo with category and severity
        """
        context = context or ErrorContext()
        mapping = self._error_mappings.get(type(error))

        if not mapping:
            for exc_type, exc_mapping in self._error_mappings.items():
                if isinstance(error, exc_type):
                    mapping = exc_mapping
                    break

        if not mapping:
            mapping = {
                "category": self.STAGE_CATEGORIES.get(context.operation or "", ErrorCategory.UNKNOWN),
                "severity": ErrorSeverity.HIGH,
            }

        return ErrorInfo(
            error=error,
            category=mapping["category"],
            severity=mapping["severity"],
            context=context,
            traceback_str=traceback.format_exc(),
        )

    def handle_error(self, error: Exception, context: Optional[ErrorContext] = None) -> ErrorInfo:
        """Categorize and log an error."""
        error_info = self.categorize_error(error, context)
        self._log_error(error_info)
        return error_info

    def _log_error(self, error_info: ErrorInfo) -> None:
        """Log at a level derived from severity."""
        log_data = {
            "error_type": type(error_info.error).__name__,
            "error_message": str(error_info.error),
            "category": error_info.category.value,
            "severity": error_info.severity.value,
            "operation": error_info.context.operation,
            "table_name": error_info.context.table_name,
            "run_id": error_info.context.run_id,
            "timestamp": error_info.context.timestamp.isoformat(),
        }
        if isinstance(error_info.error, DataMigratorError):
            log_data["error_code"] = error_info.error.code

        message = f"{error_info.category.value} error: {error_info.error}"
        if error_info.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(message, extra=log_data)
        elif error_info.severity == ErrorSeverity.HIGH:
            self.logger.error(message, extra=log_data)
        elif error_info.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(message, extra=log_data)
        else:
            self.logger.info(message, extra=log_data)

        if error_info.severity in [ErrorSeverity.HIGH, ErrorSeverity.CRITICAL]:
            self.logger.debug("Error traceback", extra={"traceback": error_info.traceback_str})
