"""
Migration of a single table.

A table moves through schema discovery, conflict-policy application,
materialization and data copy. Any failing stage ends the table's migration;
sibling tables are unaffected.
"""

import logging
import time
from datetime import timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional

from data_migrator.core.cancellation import CancellationToken
from data_migrator.core.error_handler import (
    ErrorContext,
    ErrorHandler,
    format_table_error,
    is_missing_relation_error,
)
from data_migrator.core.exceptions import (
    ConnectionError,
    CopyError,
    DataMigratorError,
    MaterializationError,
    SchemaError,
    SchemaNotFoundError,
)
from data_migrator.database.batch_copier import copy_table_data
from data_migrator.database.connections import SourceConnection, TargetConnection
from data_migrator.database.existing_data import handle_existing_data
from data_migrator.database.materializer import create_target_table
from data_migrator.database.schema_reader import read_table_schema
from data_migrator.models.config import MigrationOptions
from data_migrator.models.results import TableMigrationResult
from data_migrator.utils.logging import MigrationLogger

logger = logging.getLogger(__name__)

SourceFactory = Callable[[str, int, int], Awaitable[SourceConnection]]
TargetFactory = Callable[[str, int, int], Awaitable[TargetConnection]]


class TableStage(str, Enum):
    """Stages of a table migration."""
    SCHEMA_DISCOVERY = "schema_discovery"
    POLICY_APPLICATION = "policy_application"
    MATERIALIZATION = "materialization"
    DATA_COPY = "data_copy"
    DONE = "done"


class TableMigrator:
    """Runs the stages of one table migration over its own connections."""

    def __init__(
        self,
        source_factory: Optional[SourceFactory] = None,
        target_factory: Optional[TargetFactory] = None,
        error_handler: Optional[ErrorHandler] = None
    ):
        """
        Initialize the table migrator.

        Args:
            source_factory: Coroutine opening a source connection (defaults to pyodbc)
            target_factory: Coroutine opening a target connection (defaults to psycopg2)
            error_handler: Error handler used to categorize and log failures
        """
        self.source_factory = source_factory or SourceConnection.open
        self.target_factory = target_factory or TargetConnection.open
        self.error_handler = error_handler or ErrorHandler(logger)

    async def migrate_table(
        self,
        source_connection_string: str,
        target_connection_string: str,
        table_name: str,
        options: MigrationOptions,
        cancel_token: Optional[CancellationToken] = None,
        run_logger: Optional[MigrationLogger] = None
    ) -> TableMigrationResult:
        """
        Migrate one table and report the outcome.

        Never raises for table-level failures: they are recorded in the
        returned result. Both connections are closed on every exit path.

        Args:
            source_connection_string: Connection string of the source owning the table
            target_connection_string: Target connection string
            table_name: Source table name
            options: Migration options
            cancel_token: Optional cancellation token, checked between pages
            run_logger: Optional run logger for table-level events

        Returns:
            Result for this table
        """
        result = TableMigrationResult(
            source_table_name=table_name,
            target_table_name=options.target_table_name(table_name)
        )
        stage = TableStage.SCHEMA_DISCOVERY
        started = time.monotonic()
        source = None
        target = None

        if run_logger:
            run_logger.table_start(table_name, result.target_table_name)

        try:
            # Driver exceptions are re-raised as the engine error of their stage,
            # keeping the driver message as is.
            try:
                source = await self.source_factory(
                    source_connection_string, options.connection_timeout, options.command_timeout
                )
                target = await self.target_factory(
                    target_connection_string, options.connection_timeout, options.command_timeout
                )
            except DataMigratorError:
                raise
            except Exception as e:
                raise ConnectionError(str(e)) from e

            try:
                columns = await read_table_schema(source, table_name)
            except SchemaError:
                raise
            except Exception as e:
                raise SchemaError(str(e)) from e

            try:
                stage = TableStage.POLICY_APPLICATION
                await handle_existing_data(target, result.target_table_name, options.mode)

                stage = TableStage.MATERIALIZATION
                await create_target_table(target, table_name, result.target_table_name, columns, options)
            except Exception as e:
                raise MaterializationError(str(e)) from e

            stage = TableStage.DATA_COPY
            try:
                result.rows_migrated = await copy_table_data(
                    source,
                    target,
                    table_name,
                    result.target_table_name,
                    columns,
                    options,
                    cancel_token=cancel_token,
                    on_page=run_logger.page_copied if run_logger else None
                )
            except Exception as e:
                raise CopyError(str(e)) from e

            if cancel_token is not None and cancel_token.is_cancelled:
                result.warnings.append(
                    f"Migration of table {table_name} was cancelled after {result.rows_migrated} rows"
                )

            stage = TableStage.DONE
            result.success = True

        except SchemaNotFoundError as e:
            result.errors.append(str(e))
            self.error_handler.handle_error(e, self._error_context(stage, table_name, run_logger))

        except Exception as e:
            if is_missing_relation_error(e):
                # Not counted as an error; the table stays unsuccessful.
                message = f"Table {table_name} skipped during {stage.value}: {e}"
                logger.warning(message)
                result.warnings.append(message)
            else:
                result.errors.append(format_table_error(table_name, e))
                self.error_handler.handle_error(e, self._error_context(stage, table_name, run_logger))

        finally:
            await self._close(source, "source", table_name)
            await self._close(target, "target", table_name)
            result.duration = timedelta(seconds=time.monotonic() - started)

        if run_logger:
            if result.success:
                run_logger.table_complete(table_name, result.rows_migrated, result.duration.total_seconds())
            else:
                run_logger.table_failed(table_name, result.errors, result.duration.total_seconds())

        return result

    @staticmethod
    def _error_context(
        stage: TableStage, table_name: str, run_logger: Optional[MigrationLogger]
    ) -> ErrorContext:
        return ErrorContext(
            operation=stage.value,
            table_name=table_name,
            run_id=run_logger.run_id if run_logger else None
        )

    @staticmethod
    async def _close(connection, role: str, table_name: str) -> None:
        if connection is None:
            return
        try:
            await connection.close()
        except Exception as e:
            logger.error(f"Error closing {role} connection for table {table_name}: {e}")
