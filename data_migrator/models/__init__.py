"""
Data models for the Data Migrator.

This module contains Pydantic models for migration options,
column descriptors and migration results.
"""

from data_migrator.models.config import (
    MigrationConfig,
    MigrationMode,
    MigrationOptions,
)
from data_migrator.models.results import (
    MigrationResult,
    TableMigrationResult,
)
from data_migrator.models.schema import ColumnDescriptor

__all__ = [
    "ColumnDescriptor",
    "MigrationConfig",
    "MigrationMode",
    "MigrationOptions",
    "MigrationResult",
    "TableMigrationResult",
]
