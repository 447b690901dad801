"""Database access for the Data Migrator: connections, catalog, DDL and copy."""

from .connections import SourceConnection, TargetConnection, mask_connection_string
from .type_mapper import map_sql_server_type
from .schema_reader import list_tables, get_primary_key, get_key_columns, read_table_schema
from .materializer import build_create_table_sql, create_target_table
from .existing_data import handle_existing_data
from .batch_copier import copy_table_data, convert_value

__all__ = [
    'SourceConnection',
    'TargetConnection',
    'mask_connection_string',
    'map_sql_server_type',
    'list_tables',
    'get_primary_key',
    'get_key_columns',
    'read_table_schema',
    'build_create_table_sql',
    'create_target_table',
    'handle_existing_data',
    'copy_table_data',
    'convert_value',
]
