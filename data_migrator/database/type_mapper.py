"""Translation of SQL Server column types into PostgreSQL column types."""

from ..models.schema import ColumnDescriptor


# SQL Server reports (n)varchar(max) and varbinary(max) with a length of -1.
MAX_LENGTH_SENTINEL = -1


def _sized(base: str, column: ColumnDescriptor) -> str:
    if column.max_length is None or column.max_length == MAX_LENGTH_SENTINEL:
        return "text"
    return f"{base}({column.max_length})"


def _numeric(column: ColumnDescriptor) -> str:
    if column.precision is None:
        return "numeric"
    if column.scale is None:
        return f"numeric({column.precision})"
    return f"numeric({column.precision},{column.scale})"


def map_sql_server_type(column: ColumnDescriptor) -> str:
    """
    Map a source column to its PostgreSQL type expression.

    Unknown source types fall back to ``text``; this function never raises.

    Args:
        column: Source column descriptor

    Returns:
        PostgreSQL type expression, e.g. ``varchar(50)``
    """
    data_type = (column.data_type or "").strip().lower()

    if data_type == "int":
        return "integer"
    elif data_type == "bigint":
        return "bigint"
    elif data_type in ("smallint", "tinyint"):
        return "smallint"
    elif data_type == "bit":
        return "boolean"
    elif data_type in ("decimal", "numeric"):
        return _numeric(column)
    elif data_type in ("money", "smallmoney"):
        return "money"
    elif data_type == "float":
        return "double precision"
    elif data_type == "real":
        return "real"
    elif data_type in ("datetime", "datetime2", "smalldatetime"):
        return "timestamp"
    elif data_type == "datetimeoffset":
        return "timestamptz"
    elif data_type == "date":
        return "date"
    elif data_type == "time":
        return "time"
    elif data_type == "uniqueidentifier":
        return "uuid"
    elif data_type in ("varchar", "nvarchar"):
        return _sized("varchar", column)
    elif data_type in ("char", "nchar"):
        return _sized("char", column)
    elif data_type in ("binary", "varbinary", "image"):
        return "bytea"
    elif data_type == "xml":
        return "xml"

    # text, ntext and anything unrecognized
    return "text"
