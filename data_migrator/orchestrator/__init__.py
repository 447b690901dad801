"""Orchestration of table and run-level migration."""

from .table_orchestrator import TableMigrator, TableStage
from .migration_orchestrator import DataMigrationService

__all__ = [
    "DataMigrationService",
    "TableMigrator",
    "TableStage",
]
