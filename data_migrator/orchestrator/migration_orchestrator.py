"""
Migration orchestrator: copies every selected table from one or more SQL
Server sources into a PostgreSQL target.

Tables are migrated strictly one at a time. Run-level problems (bad
configuration, unreachable databases) stop the run before any schema work;
table-level problems are recorded and the run continues.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from data_migrator.core.cancellation import CancellationToken
from data_migrator.core.exceptions import ConfigurationError
from data_migrator.database.connections import (
    SourceConnection,
    TargetConnection,
    mask_connection_string,
)
from data_migrator.database.schema_reader import list_tables
from data_migrator.models.config import MigrationMode, MigrationOptions
from data_migrator.models.results import MigrationResult, TableMigrationResult
from data_migrator.orchestrator.table_orchestrator import (
    SourceFactory,
    TableMigrator,
    TargetFactory,
)
from data_migrator.utils.helpers import generate_run_id
from data_migrator.utils.logging import MigrationLogger

logger = logging.getLogger(__name__)

TableCallback = Callable[[TableMigrationResult], None]


class DataMigrationService:
    """
    Entry point of the migration engine.

    Connection strings are the connection handles: every table opens its own
    source and target connection from them.
    """

    def __init__(
        self,
        source_factory: Optional[SourceFactory] = None,
        target_factory: Optional[TargetFactory] = None,
        table_migrator: Optional[TableMigrator] = None,
        on_table_complete: Optional[TableCallback] = None,
        structured_logging: bool = False
    ):
        """
        Initialize the migration service.

        Args:
            source_factory: Coroutine opening a source connection (defaults to pyodbc)
            target_factory: Coroutine opening a target connection (defaults to psycopg2)
            table_migrator: Table migrator to use (built from the factories by default)
            on_table_complete: Optional callback invoked after each table
            structured_logging: Whether run logs carry structured entries
        """
        self.source_factory = source_factory or SourceConnection.open
        self.target_factory = target_factory or TargetConnection.open
        self.table_migrator = table_migrator or TableMigrator(self.source_factory, self.target_factory)
        self.on_table_complete = on_table_complete
        self.structured_logging = structured_logging

    async def migrate(
        self,
        sources: Union[str, Sequence[str]],
        target: str,
        options: MigrationOptions,
        cancel_token: Optional[CancellationToken] = None
    ) -> MigrationResult:
        """
        Migrate all selected tables from the sources into the target.

        Args:
            sources: One source connection string or a list of them
            target: Target connection string
            options: Migration options
            cancel_token: Optional cancellation token, checked between tables and pages

        Returns:
            Aggregated migration result

        Raises:
            ConfigurationError: If no options are given
        """
        if options is None:
            raise ConfigurationError("Migration options are required")

        cancel_token = cancel_token or CancellationToken()
        run_logger = MigrationLogger(generate_run_id(), structured=self.structured_logging)
        result = MigrationResult()

        try:
            source_list = [sources] if isinstance(sources, str) else list(sources or [])
            if not source_list:
                result.errors.append("No source connection strings provided")
                return result

            if any(not conn_str or not conn_str.strip() for conn_str in source_list):
                result.errors.append("Source connection string cannot be empty")
                return result

            if not target or not target.strip():
                result.errors.append("Target connection string cannot be empty")
                return result

            for source in source_list:
                if not await self.test_connection(source, is_target=False, options=options):
                    result.errors.append(
                        f"Failed to connect to source database: {mask_connection_string(source)}"
                    )
                    return result

            if not await self.test_connection(target, is_target=True, options=options):
                result.errors.append("Failed to connect to target PostgreSQL database")
                return result

            if options.mode == MigrationMode.UPSERT:
                message = "Upsert mode does not resolve conflicts; rows are appended as in insert mode"
                run_logger.warning(message)
                result.warnings.append(message)

            tables = await self._collect_tables(source_list, options)
            run_logger.info(f"Migrating {len(tables)} tables from {len(source_list)} source(s)")

            for table_name, source in tables.items():
                if cancel_token.is_cancelled:
                    run_logger.warning(
                        f"Migration cancelled; {len(tables) - result.tables_processed} tables not processed"
                    )
                    break

                table_result = await self.table_migrator.migrate_table(
                    source, target, table_name, options, cancel_token, run_logger
                )
                result.add_table_result(table_result)

                if self.on_table_complete:
                    self.on_table_complete(table_result)

        except Exception as e:
            logger.exception("Migration failed")
            result.errors.append(f"Migration failed: {e}")

        finally:
            result.finalize()
            run_logger.info(
                f"Migration finished: success={result.success}, tables={result.tables_processed}, "
                f"rows={result.total_rows_migrated}, errors={len(result.errors)}"
            )

        return result

    async def _collect_tables(self, sources: List[str], options: MigrationOptions) -> Dict[str, str]:
        """Map each selected table to the source it is read from; later sources win."""
        tables: Dict[str, str] = {}
        for source in sources:
            for table_name in await self.list_tables(source, options):
                if not options.should_migrate_table(table_name):
                    logger.debug(f"Skipping filtered table {table_name}")
                    continue
                if table_name in tables and tables[table_name] != source:
                    logger.info(
                        f"Table {table_name} exists in several sources; "
                        f"using {mask_connection_string(source)}"
                    )
                tables[table_name] = source
        return tables

    async def list_tables(self, connection_string: str, options: Optional[MigrationOptions] = None) -> List[str]:
        """
        List base tables of a source database.

        Raises:
            ConfigurationError: If the connection string is blank
        """
        if connection_string is None or not connection_string.strip():
            raise ConfigurationError("Connection string cannot be empty")

        options = options or MigrationOptions()
        source = await self.source_factory(
            connection_string, options.connection_timeout, options.command_timeout
        )
        try:
            return await list_tables(source)
        finally:
            await source.close()

    async def test_connection(
        self,
        connection_string: str,
        is_target: bool = False,
        options: Optional[MigrationOptions] = None
    ) -> bool:
        """
        Check that a database accepts connections. Never raises.

        Args:
            connection_string: Connection string to test
            is_target: Whether this is the PostgreSQL target (otherwise a SQL Server source)
            options: Optional options supplying the timeouts

        Returns:
            True if a connection could be opened and answered a probe query
        """
        options = options or MigrationOptions()
        factory = self.target_factory if is_target else self.source_factory
        role = "target" if is_target else "source"

        try:
            connection = await factory(
                connection_string, options.connection_timeout, options.command_timeout
            )
            try:
                return await connection.ping()
            finally:
                await connection.close()
        except Exception as e:
            logger.warning(
                f"Connection test failed for {role} {mask_connection_string(connection_string)}: {e}"
            )
            return False
