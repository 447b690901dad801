#!/usr/bin/env python3
"""
Demonstration of a programmatic migration run.

Connection strings are read from the environment:

    DM_SOURCE  ODBC connection string of the SQL Server source
    DM_TARGET  libpq connection string of the PostgreSQL target
"""

import asyncio
import os
import sys

from data_migrator import (
    CancellationToken,
    DataMigrationService,
    MigrationMode,
    MigrationOptions,
    TableMigrationResult,
)
from data_migrator.utils.helpers import format_duration
from data_migrator.utils.logging import setup_logging


def report_table(result: TableMigrationResult) -> None:
    status = "ok" if result.success else "FAILED"
    print(f"  {result.source_table_name} -> {result.target_table_name}: "
          f"{result.rows_migrated} rows, {format_duration(result.duration)} [{status}]")


async def demonstrate_migration() -> bool:
    source = os.environ.get("DM_SOURCE")
    target = os.environ.get("DM_TARGET")
    if not source or not target:
        print("Set DM_SOURCE and DM_TARGET to run this demo.")
        return False

    setup_logging(level="INFO")

    service = DataMigrationService(on_table_complete=report_table)

    print("Checking connections...")
    if not await service.test_connection(source):
        print("Source database is not reachable.")
        return False
    if not await service.test_connection(target, is_target=True):
        print("Target database is not reachable.")
        return False

    tables = await service.list_tables(source)
    print(f"Found {len(tables)} tables: {', '.join(tables)}")

    options = MigrationOptions(
        table_prefix="legacy_",
        mode=MigrationMode.OVERWRITE,
        batch_size=500,
        exclude_tables={"__EFMigrationsHistory"},
    )

    print("Migrating...")
    result = await service.migrate(source, target, options, CancellationToken())

    print()
    print(f"Tables processed: {result.tables_processed}")
    print(f"Rows migrated:    {result.total_rows_migrated}")
    print(f"Duration:         {format_duration(result.duration)}")
    for warning in result.warnings:
        print(f"Warning: {warning}")
    for error in result.errors:
        print(f"Error: {error}")

    return result.success


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(demonstrate_migration()) else 1)
