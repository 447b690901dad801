"""
Data Migrator

Copies tables from one or more SQL Server databases into PostgreSQL,
re-creating compatible table schemas on the fly.
"""

__version__ = "0.1.0"
__author__ = "Data Migrator Team"

from data_migrator.core.cancellation import CancellationToken
from data_migrator.models.config import MigrationConfig, MigrationMode, MigrationOptions
from data_migrator.models.results import MigrationResult, TableMigrationResult
from data_migrator.orchestrator.migration_orchestrator import DataMigrationService

__all__ = [
    "CancellationToken",
    "DataMigrationService",
    "MigrationConfig",
    "MigrationMode",
    "MigrationOptions",
    "MigrationResult",
    "TableMigrationResult",
]
