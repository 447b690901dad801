"""Paginated row copy from a SQL Server table into its PostgreSQL counterpart."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from ..core.cancellation import CancellationToken
from ..models.config import MigrationOptions
from ..models.schema import ColumnDescriptor
from .connections import SourceConnection, TargetConnection
from .materializer import quote_identifier
from .schema_reader import SOURCE_SCHEMA


logger = logging.getLogger(__name__)

PageCallback = Callable[[str, int, int], None]


def quote_source_identifier(name: str) -> str:
    """Quote a SQL Server identifier."""
    return "[" + name.replace("]", "]]") + "]"


def ordering_columns(columns: List[ColumnDescriptor]) -> List[ColumnDescriptor]:
    """Key columns in key order, falling back to the flagged primary key."""
    keyed = sorted(
        (column for column in columns if column.key_position is not None),
        key=lambda column: column.key_position
    )
    return keyed or [column for column in columns if column.is_primary_key]


def build_select_page_sql(table_name: str, columns: List[ColumnDescriptor]) -> str:
    """
    Build the page query for a source table.

    Parameters are the row offset and the page size. Pages are ordered by
    all primary-key columns when a key was detected; otherwise the order is
    unspecified and rows may shift between pages if the source changes.
    """
    column_list = ", ".join(quote_source_identifier(column.name) for column in columns)
    key_columns = [quote_source_identifier(column.name) for column in ordering_columns(columns)]
    order_by = ", ".join(key_columns) if key_columns else "(SELECT NULL)"

    return (
        f"SELECT {column_list} "
        f"FROM {quote_source_identifier(SOURCE_SCHEMA)}.{quote_source_identifier(table_name)} "
        f"ORDER BY {order_by} "
        f"OFFSET ? ROWS FETCH NEXT ? ROWS ONLY"
    )


def build_insert_sql(
    source_table: str,
    target_table: str,
    columns: List[ColumnDescriptor],
    options: MigrationOptions
) -> str:
    """Build the parameterized single-row insert for the target table."""
    column_list = ", ".join(
        quote_identifier(options.target_column_name(source_table, column.name)) for column in columns
    )
    placeholders = ", ".join(["%s"] * len(columns))
    return f"INSERT INTO {quote_identifier(target_table)} ({column_list}) VALUES ({placeholders})"


def convert_value(value: Any) -> Any:
    """Convert a source value for insertion into PostgreSQL."""
    if value is None:
        return None
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value


async def copy_table_data(
    source: SourceConnection,
    target: TargetConnection,
    source_table: str,
    target_table: str,
    columns: List[ColumnDescriptor],
    options: MigrationOptions,
    cancel_token: Optional[CancellationToken] = None,
    on_page: Optional[PageCallback] = None
) -> int:
    """
    Copy all rows of a source table into the target table, one page at a time.

    The offset advances by the configured batch size after every page and the
    loop stops at the first empty page. Cancellation is checked before each
    page is read. Any exception aborts the remaining pages and propagates.

    Args:
        source: Open source connection
        target: Open target connection
        source_table: Source table name
        target_table: Target table name
        columns: Column descriptors in ordinal order
        options: Migration options (batch size, column mappings)
        cancel_token: Optional cancellation token
        on_page: Optional callback receiving (target table, page rows, total rows)

    Returns:
        Number of rows copied
    """
    select_sql = build_select_page_sql(source_table, columns)
    insert_sql = build_insert_sql(source_table, target_table, columns, options)
    batch_size = options.batch_size

    if not ordering_columns(columns):
        logger.warning(
            f"Table {source_table} has no primary key; pages are read without a stable order"
        )

    total_rows = 0
    offset = 0

    while True:
        if cancel_token is not None and cancel_token.is_cancelled:
            logger.info(f"Cancellation requested; stopping copy of {source_table} after {total_rows} rows")
            break

        page = await source.fetch_all(select_sql, (offset, batch_size))
        if not page:
            break

        rows = [tuple(convert_value(value) for value in row) for row in page]
        await target.execute_many(insert_sql, rows)

        total_rows += len(rows)
        offset += batch_size

        logger.debug(f"Copied {len(rows)} rows into {target_table} (total {total_rows})")
        if on_page is not None:
            on_page(target_table, len(rows), total_rows)

    return total_rows
