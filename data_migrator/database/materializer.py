"""DDL for creating target tables in PostgreSQL."""

import logging
from typing import List

from ..models.config import MigrationOptions
from ..models.schema import ColumnDescriptor
from .connections import TargetConnection
from .type_mapper import map_sql_server_type


logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote a PostgreSQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def build_create_table_sql(
    source_table: str,
    target_table: str,
    columns: List[ColumnDescriptor],
    options: MigrationOptions
) -> str:
    """
    Build a ``CREATE TABLE IF NOT EXISTS`` statement for the target table.

    Primary-key columns are always NOT NULL, whatever the source nullability.
    Column names honour the per-table column mappings of ``options``.
    """
    column_defs = []
    primary_key_columns = []

    for column in columns:
        target_name = quote_identifier(options.target_column_name(source_table, column.name))
        col_def = f"    {target_name} {map_sql_server_type(column)}"
        if not column.is_nullable or column.is_primary_key:
            col_def += " NOT NULL"
        column_defs.append(col_def)

        if column.is_primary_key:
            primary_key_columns.append(target_name)

    if primary_key_columns:
        column_defs.append(f"    PRIMARY KEY ({', '.join(primary_key_columns)})")

    return (
        f"CREATE TABLE IF NOT EXISTS {quote_identifier(target_table)} (\n"
        + ",\n".join(column_defs)
        + "\n)"
    )


async def create_target_table(
    target: TargetConnection,
    source_table: str,
    target_table: str,
    columns: List[ColumnDescriptor],
    options: MigrationOptions
) -> None:
    """Create the target table if it does not already exist."""
    if options.create_indexes or options.create_foreign_keys:
        # Accepted for compatibility; no index or foreign-key DDL is emitted.
        logger.debug(
            f"Index/foreign key creation requested for {target_table}; "
            "only the table and its primary key are created"
        )

    create_statement = build_create_table_sql(source_table, target_table, columns, options)
    await target.execute(create_statement)
    logger.info(f"Ensured target table {target_table} ({len(columns)} columns)")
