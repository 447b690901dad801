"""
Pytest configuration and fixtures for the Data Migrator tests.

This module provides in-memory stand-ins for the SQL Server source and the
PostgreSQL target, connection factories that hand them out, and sample
table data shared by the test modules.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pytest

from data_migrator.database.schema_reader import (
    COLUMNS_QUERY,
    KEY_COLUMNS_QUERY,
    PRIMARY_KEY_QUERY,
    TABLES_QUERY,
)
from data_migrator.models.config import MigrationOptions
from data_migrator.models.schema import ColumnDescriptor
from data_migrator.orchestrator.migration_orchestrator import DataMigrationService


SOURCE_CS = "Driver={ODBC Driver 18 for SQL Server};Server=sql1;Database=app;UID=sa;PWD=secret"
SECOND_SOURCE_CS = "Driver={ODBC Driver 18 for SQL Server};Server=sql2;Database=app;UID=sa;PWD=secret"
TARGET_CS = "host=localhost dbname=target user=postgres password=secret"

# (name, type, nullable, max length, precision, scale, default, ordinal)
USERS_COLUMNS = [
    ("Id", "int", "NO", None, 10, 0, None, 1),
    ("Name", "nvarchar", "YES", 50, None, None, None, 2),
    ("Email", "varchar", "YES", 100, None, None, None, 3),
]

USERS_ROWS = [
    (1, "John Doe", "john@example.com"),
    (2, "Jane Smith", "jane@example.com"),
    (3, "Bob Johnson", "bob@example.com"),
]

ORDERS_COLUMNS = [
    ("OrderId", "bigint", "NO", None, 19, 0, None, 1),
    ("Total", "decimal", "NO", None, 10, 2, "((0))", 2),
    ("Notes", "nvarchar", "YES", -1, None, None, None, 3),
]

ORDERS_ROWS = [
    (100, 19.99, None),
    (101, 5.00, "gift wrap"),
]

LINES_COLUMNS = [
    ("OrderId", "int", "NO", None, 10, 0, None, 1),
    ("LineNo", "int", "NO", None, 10, 0, None, 2),
    ("Qty", "int", "YES", None, 10, 0, None, 3),
]

LINES_ROWS = [
    (100, 1, 2),
    (100, 2, 1),
    (101, 1, 5),
]


class FakeDatabaseError(Exception):
    """Stands in for driver exceptions raised by pyodbc or psycopg2."""


def _quoted_name(sql: str, prefix: str) -> str:
    rest = sql[len(prefix):]
    start = rest.index('"') + 1
    return rest[start:rest.index('"', start)]


class FakeSourceConnection:
    """In-memory SQL Server source answering the catalog and page queries."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Any]] = {}
        self.queries: List[tuple] = []
        self.page_requests: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.close_count = 0

    def add_table(
        self,
        name: str,
        columns: Iterable[tuple],
        rows: Iterable[tuple] = (),
        primary_key: Optional[str] = None,
        key_columns: Optional[List[str]] = None
    ) -> "FakeSourceConnection":
        if key_columns is None:
            key_columns = [primary_key] if primary_key else []
        self.tables[name] = {
            "columns": list(columns),
            "rows": list(rows),
            "primary_key": key_columns[0] if key_columns else None,
            "key_columns": list(key_columns),
        }
        return self

    def _page_table(self, sql: str) -> Optional[str]:
        for name in self.tables:
            if f"[{name}] ORDER BY" in sql:
                return name
        return None

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[tuple]:
        self.queries.append((sql, tuple(params)))
        if sql == TABLES_QUERY:
            return [(name,) for name in sorted(self.tables)]
        if sql == COLUMNS_QUERY:
            table = self.tables.get(params[0])
            return list(table["columns"]) if table else []
        if sql == KEY_COLUMNS_QUERY:
            table = self.tables.get(params[0])
            return [(column,) for column in table["key_columns"]] if table else []

        name = self._page_table(sql)
        if name in self.failures:
            raise self.failures[name]
        offset, size = params
        self.page_requests.append((name, offset, size))
        if name is None:
            return []
        return self.tables[name]["rows"][offset:offset + size]

    async def fetch_scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        self.queries.append((sql, tuple(params)))
        if sql == PRIMARY_KEY_QUERY:
            table = self.tables.get(params[0])
            return table["primary_key"] if table else None
        return 1

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.close_count += 1


class FakeTargetConnection:
    """In-memory PostgreSQL target that tracks created tables and inserted rows."""

    def __init__(self):
        self.statements: List[str] = []
        self.batches: List[tuple] = []
        self.tables: Dict[str, str] = {}
        self.rows: Dict[str, List[tuple]] = {}
        self.failures: Dict[str, Exception] = {}
        self.close_count = 0

    def _check_failures(self, sql: str) -> None:
        for fragment, error in self.failures.items():
            if fragment in sql:
                raise error

    def _require_table(self, name: str) -> None:
        if name not in self.tables:
            raise FakeDatabaseError(f'relation "{name}" does not exist')

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        self.statements.append(sql)
        self._check_failures(sql)

        if sql.startswith("CREATE TABLE IF NOT EXISTS "):
            name = _quoted_name(sql, "CREATE TABLE IF NOT EXISTS ")
            self.tables.setdefault(name, sql)
            self.rows.setdefault(name, [])
        elif sql.startswith("DROP TABLE IF EXISTS "):
            name = _quoted_name(sql, "DROP TABLE IF EXISTS ")
            self.tables.pop(name, None)
            self.rows.pop(name, None)
        elif sql.startswith("TRUNCATE TABLE "):
            name = _quoted_name(sql, "TRUNCATE TABLE ")
            self._require_table(name)
            self.rows[name] = []

    async def execute_many(self, sql: str, rows: Sequence[Sequence[Any]]) -> None:
        self.batches.append((sql, list(rows)))
        self._check_failures(sql)
        name = _quoted_name(sql, "INSERT INTO ")
        self._require_table(name)
        self.rows[name].extend(tuple(row) for row in rows)

    async def fetch_scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        return 1

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.close_count += 1


class FakeConnectionFactory:
    """Async factory with the signature of ``SourceConnection.open``."""

    def __init__(self, connections: Dict[str, Any]):
        self.connections = connections
        self.opened: List[tuple] = []

    async def __call__(self, connection_string: str, connection_timeout: int = 30,
                       command_timeout: int = 300):
        if connection_string not in self.connections:
            raise FakeDatabaseError(f"could not connect to server: {connection_string}")
        self.opened.append((connection_string, connection_timeout, command_timeout))
        return self.connections[connection_string]


def make_columns(
    rows: Iterable[tuple],
    primary_key: Optional[str] = None,
    key_columns: Optional[List[str]] = None
) -> List[ColumnDescriptor]:
    """Build column descriptors from catalog-shaped tuples."""
    keys = [key.lower() for key in (key_columns or ([primary_key] if primary_key else []))]
    return [
        ColumnDescriptor(
            name=name,
            data_type=data_type,
            is_nullable=nullable == "YES",
            max_length=max_length,
            precision=precision,
            scale=scale,
            default_value=default,
            ordinal_position=ordinal,
            is_primary_key=bool(keys) and name.lower() == keys[0],
            key_position=keys.index(name.lower()) + 1 if name.lower() in keys else None,
        )
        for name, data_type, nullable, max_length, precision, scale, default, ordinal in rows
    ]


@pytest.fixture
def users_source() -> FakeSourceConnection:
    """Source database holding the Users table."""
    return FakeSourceConnection().add_table("Users", USERS_COLUMNS, USERS_ROWS, primary_key="Id")


@pytest.fixture
def target() -> FakeTargetConnection:
    """Empty target database."""
    return FakeTargetConnection()


@pytest.fixture
def source_factory(users_source) -> FakeConnectionFactory:
    return FakeConnectionFactory({SOURCE_CS: users_source})


@pytest.fixture
def target_factory(target) -> FakeConnectionFactory:
    return FakeConnectionFactory({TARGET_CS: target})


@pytest.fixture
def service(source_factory, target_factory) -> DataMigrationService:
    """Migration service wired to the in-memory databases."""
    return DataMigrationService(source_factory=source_factory, target_factory=target_factory)


@pytest.fixture
def users_columns() -> List[ColumnDescriptor]:
    return make_columns(USERS_COLUMNS, primary_key="Id")


@pytest.fixture
def default_options() -> MigrationOptions:
    return MigrationOptions()
