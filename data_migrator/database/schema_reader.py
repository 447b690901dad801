"""Catalog queries against the SQL Server source."""

import logging
from typing import List, Optional

from ..core.exceptions import SchemaNotFoundError
from ..models.schema import ColumnDescriptor
from .connections import SourceConnection


logger = logging.getLogger(__name__)

SOURCE_SCHEMA = "dbo"

TABLES_QUERY = """
    SELECT TABLE_NAME
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_TYPE = 'BASE TABLE'
      AND TABLE_SCHEMA = ?
    ORDER BY TABLE_NAME
"""

PRIMARY_KEY_QUERY = """
    SELECT TOP 1 KU.COLUMN_NAME
    FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS TC
    INNER JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS KU
        ON TC.CONSTRAINT_NAME = KU.CONSTRAINT_NAME
        AND TC.TABLE_SCHEMA = KU.TABLE_SCHEMA
    WHERE TC.TABLE_NAME = ?
      AND TC.TABLE_SCHEMA = ?
      AND TC.CONSTRAINT_TYPE = 'PRIMARY KEY'
    ORDER BY KU.ORDINAL_POSITION
"""

KEY_COLUMNS_QUERY = """
    SELECT KU.COLUMN_NAME
    FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS TC
    INNER JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS KU
        ON TC.CONSTRAINT_NAME = KU.CONSTRAINT_NAME
        AND TC.TABLE_SCHEMA = KU.TABLE_SCHEMA
    WHERE TC.TABLE_NAME = ?
      AND TC.TABLE_SCHEMA = ?
      AND TC.CONSTRAINT_TYPE = 'PRIMARY KEY'
    ORDER BY KU.ORDINAL_POSITION
"""

COLUMNS_QUERY = """
    SELECT
        COLUMN_NAME,
        DATA_TYPE,
        IS_NULLABLE,
        CHARACTER_MAXIMUM_LENGTH,
        NUMERIC_PRECISION,
        NUMERIC_SCALE,
        COLUMN_DEFAULT,
        ORDINAL_POSITION
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_NAME = ?
      AND TABLE_SCHEMA = ?
    ORDER BY ORDINAL_POSITION
"""


async def list_tables(source: SourceConnection) -> List[str]:
    """List base tables of the source schema, ordered by name."""
    rows = await source.fetch_all(TABLES_QUERY, (SOURCE_SCHEMA,))
    return [row[0] for row in rows]


async def get_primary_key(source: SourceConnection, table_name: str) -> Optional[str]:
    """
    Return the first primary-key column of a table, or None.

    Composite keys are approximated to their first column by ordinal.
    """
    return await source.fetch_scalar(PRIMARY_KEY_QUERY, (table_name, SOURCE_SCHEMA))


async def get_key_columns(source: SourceConnection, table_name: str) -> List[str]:
    """Return every primary-key column of a table in key order."""
    rows = await source.fetch_all(KEY_COLUMNS_QUERY, (table_name, SOURCE_SCHEMA))
    return [row[0] for row in rows]


async def read_table_schema(source: SourceConnection, table_name: str) -> List[ColumnDescriptor]:
    """
    Read the ordered column set of a source table.

    Only the first key column is flagged as the primary key; every key
    column gets its position in the key so pages can be ordered uniquely.

    Args:
        source: Open source connection
        table_name: Source table name

    Returns:
        Column descriptors in ordinal order

    Raises:
        SchemaNotFoundError: If the table has no discoverable columns
    """
    key_columns = [name.lower() for name in await get_key_columns(source, table_name)]
    primary_key = key_columns[0] if key_columns else None
    rows = await source.fetch_all(COLUMNS_QUERY, (table_name, SOURCE_SCHEMA))

    columns = []
    for name, data_type, is_nullable, max_length, precision, scale, default, ordinal in rows:
        columns.append(ColumnDescriptor(
            name=name,
            data_type=data_type,
            is_nullable=is_nullable == "YES",
            max_length=max_length,
            precision=precision,
            scale=scale,
            default_value=default,
            ordinal_position=ordinal,
            is_primary_key=name.lower() == primary_key,
            key_position=key_columns.index(name.lower()) + 1 if name.lower() in key_columns else None,
        ))

    if not columns:
        raise SchemaNotFoundError(table_name)

    logger.debug(
        f"Read {len(columns)} columns for table {table_name} "
        f"(key columns: {len(key_columns)})"
    )
    return columns
