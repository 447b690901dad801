"""Async connection handles for the SQL Server source and PostgreSQL target.

Both drivers are blocking, so every call that touches the wire is pushed to a
worker thread with ``asyncio.to_thread``. A handle is used by one coroutine at
a time and is never shared across tables.
"""

import asyncio
import logging
import re
import struct
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence

import psycopg2
import pyodbc

from ..core.exceptions import ConfigurationError, ConnectionError


logger = logging.getLogger(__name__)

# ODBC type code for SQL Server's datetimeoffset, which pyodbc cannot decode.
SQL_DATETIMEOFFSET = -155

_PASSWORD_PATTERN = re.compile(r"((?:password|pwd)\s*=\s*)([^;\s]*)", re.IGNORECASE)
_URL_PASSWORD_PATTERN = re.compile(r"(://[^:/@]+:)([^@]*)(@)")


def mask_connection_string(connection_string: Any) -> str:
    """Hide passwords in a connection string so it can be logged."""
    if not connection_string:
        return ""
    masked = _PASSWORD_PATTERN.sub(r"\1***", str(connection_string))
    return _URL_PASSWORD_PATTERN.sub(r"\1***\3", masked)


def _require_connection_string(connection_string: Any) -> str:
    if not isinstance(connection_string, str) or not connection_string.strip():
        raise ConfigurationError("Connection string cannot be empty")
    return connection_string


def _handle_datetimeoffset(value: bytes) -> datetime:
    """Decode the raw datetimeoffset structure into an aware datetime."""
    parts = struct.unpack("<6hI2h", value)
    return datetime(
        parts[0], parts[1], parts[2], parts[3], parts[4], parts[5], parts[6] // 1000,
        timezone(timedelta(hours=parts[7], minutes=parts[8]))
    )


class SourceConnection:
    """Open connection to a SQL Server source database (pyodbc)."""

    def __init__(self, connection: Any):
        self._connection = connection
        self._closed = False

    @classmethod
    async def open(
        cls,
        connection_string: str,
        connection_timeout: int = 30,
        command_timeout: int = 300
    ) -> "SourceConnection":
        """Connect to the source database.

        Args:
            connection_string: ODBC connection string
            connection_timeout: Login timeout in seconds
            command_timeout: Query timeout in seconds

        Returns:
            Open source connection

        Raises:
            ConfigurationError: If the connection string is blank
            ConnectionError: If the driver cannot connect
        """
        _require_connection_string(connection_string)
        try:
            connection = await asyncio.to_thread(
                pyodbc.connect, connection_string, timeout=connection_timeout, autocommit=True
            )
        except Exception as e:
            raise ConnectionError(
                f"Could not connect to source database {mask_connection_string(connection_string)}: {e}"
            ) from e
        connection.timeout = command_timeout
        connection.add_output_converter(SQL_DATETIMEOFFSET, _handle_datetimeoffset)
        logger.debug(f"Opened source connection: {mask_connection_string(connection_string)}")
        return cls(connection)

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[tuple]:
        """Run a query and return every row as a tuple."""
        def _fetch():
            cursor = self._connection.cursor()
            try:
                cursor.execute(sql, *params)
                return [tuple(row) for row in cursor.fetchall()]
            finally:
                cursor.close()

        return await asyncio.to_thread(_fetch)

    async def fetch_scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Run a query and return the first column of the first row, or None."""
        def _fetch():
            cursor = self._connection.cursor()
            try:
                cursor.execute(sql, *params)
                row = cursor.fetchone()
                return row[0] if row else None
            finally:
                cursor.close()

        return await asyncio.to_thread(_fetch)

    async def ping(self) -> bool:
        return await self.fetch_scalar("SELECT 1") == 1

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await asyncio.to_thread(self._connection.close)

    async def __aenter__(self) -> "SourceConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class TargetConnection:
    """Open connection to a PostgreSQL target database (psycopg2)."""

    def __init__(self, connection: Any):
        self._connection = connection
        self._closed = False

    @classmethod
    async def open(
        cls,
        connection_string: str,
        connection_timeout: int = 30,
        command_timeout: int = 300
    ) -> "TargetConnection":
        """Connect to the target database.

        Args:
            connection_string: libpq DSN or postgresql:// URL
            connection_timeout: Connect timeout in seconds
            command_timeout: Statement timeout in seconds

        Returns:
            Open target connection in autocommit mode

        Raises:
            ConfigurationError: If the connection string is blank
            ConnectionError: If the driver cannot connect
        """
        _require_connection_string(connection_string)
        try:
            connection = await asyncio.to_thread(
                psycopg2.connect,
                connection_string,
                connect_timeout=connection_timeout,
                options=f"-c statement_timeout={command_timeout * 1000}"
            )
        except Exception as e:
            raise ConnectionError(
                f"Could not connect to target database {mask_connection_string(connection_string)}: {e}"
            ) from e
        connection.autocommit = True
        logger.debug(f"Opened target connection: {mask_connection_string(connection_string)}")
        return cls(connection)

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        """Execute a single statement."""
        def _execute():
            with self._connection.cursor() as cursor:
                cursor.execute(sql, params)

        await asyncio.to_thread(_execute)

    async def execute_many(self, sql: str, rows: Sequence[Sequence[Any]]) -> None:
        """Execute a parameterized statement once per row."""
        def _execute():
            with self._connection.cursor() as cursor:
                cursor.executemany(sql, rows)

        await asyncio.to_thread(_execute)

    async def fetch_scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Run a query and return the first column of the first row, or None."""
        def _fetch():
            with self._connection.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
                return row[0] if row else None

        return await asyncio.to_thread(_fetch)

    async def ping(self) -> bool:
        return await self.fetch_scalar("SELECT 1") == 1

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await asyncio.to_thread(self._connection.close)

    async def __aenter__(self) -> "TargetConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
