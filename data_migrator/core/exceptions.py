"""
Custom exceptions for the Data Migrator.

This module defines custom exception classes used throughout
the migration engine for better error handling and reporting.
"""

from typing import Any, Dict, Optional


class DataMigratorError(Exception):
    """Base exception class for Data Migrator errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class ConfigurationError(DataMigratorError):
    """Raised when there's an error in configuration."""
    pass


class ConnectionError(DataMigratorError):
    """Raised when connection to a database fails."""
    pass


class DatabaseError(DataMigratorError):
    """Raised when database operations fail."""
    pass


class SchemaError(DatabaseError):
    """Raised when there are schema-related errors."""
    pass


class SchemaNotFoundError(SchemaError):
    """Raised when no columns can be discovered for a source table."""

    def __init__(self, table_name: str, **kwargs):
        super().__init__(f"No columns found for table {table_name}", **kwargs)
        self.table_name = table_name


class MaterializationError(DatabaseError):
    """Raised when target table DDL fails."""
    pass


class CopyError(DatabaseError):
    """Raised when copying rows between databases fails."""
    pass
