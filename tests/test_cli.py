"""
Tests for the Data Migrator CLI.

The migration service is mocked; these tests cover option parsing,
configuration loading, output and exit codes.
"""

import json
import logging
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from data_migrator.cli.main import main
from data_migrator.core.cancellation import CancellationToken
from data_migrator.core.exceptions import ConfigurationError
from data_migrator.models.config import MigrationMode
from data_migrator.models.results import MigrationResult, TableMigrationResult


def finished_result(errors=None):
    result = MigrationResult()
    result.add_table_result(TableMigrationResult(
        source_table_name="Users", target_table_name="users", rows_migrated=3, success=not errors,
        errors=errors or []
    ))
    result.finalize()
    return result


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("data_migrator")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestCLI:
    """Test CLI functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_main_command_help(self):
        result = self.runner.invoke(main, [])

        assert result.exit_code == 0
        assert "Copies tables from SQL Server databases into PostgreSQL" in result.output
        assert "migrate" in result.output
        assert "list-tables" in result.output

    def test_version_flag(self):
        result = self.runner.invoke(main, ['--version'])

        assert result.exit_code == 0
        assert "Data Migrator version 0.1.0" in result.output


class TestMigrateCommand:
    """Test the migrate command."""

    def setup_method(self):
        self.runner = CliRunner()

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_migrate_from_options(self, mock_service_class):
        mock_service = mock_service_class.return_value
        mock_service.migrate = AsyncMock(return_value=finished_result())

        result = self.runner.invoke(main, [
            'migrate', '-s', 'Server=sql1;PWD=x', '-t', 'host=pg',
            '--prefix', 'Test_', '--batch-size', '2', '--include', 'Users'
        ])

        assert result.exit_code == 0
        assert "Migration Succeeded" in result.output
        sources, target, options, token = mock_service.migrate.call_args.args
        assert sources == ['Server=sql1;PWD=x']
        assert target == 'host=pg'
        assert options.table_prefix == 'Test_'
        assert options.batch_size == 2
        assert options.include_tables == {'Users'}
        assert options.mode == MigrationMode.INSERT
        assert isinstance(token, CancellationToken)

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_migrate_from_config_file_with_override(self, mock_service_class, tmp_path):
        mock_service = mock_service_class.return_value
        mock_service.migrate = AsyncMock(return_value=finished_result())
        config_file = tmp_path / "migration.yaml"
        config_file.write_text(
            "sources:\n"
            "  - Server=sql1\n"
            "  - Server=sql2\n"
            "target: host=pg\n"
            "options:\n"
            "  batch_size: 500\n"
            "  exclude_tables: [Audit]\n"
        )

        result = self.runner.invoke(main, ['migrate', '-c', str(config_file), '--mode', 'overwrite'])

        assert result.exit_code == 0
        sources, target, options, _ = mock_service.migrate.call_args.args
        assert sources == ['Server=sql1', 'Server=sql2']
        assert options.batch_size == 500
        assert options.exclude_tables == {'Audit'}
        assert options.mode == MigrationMode.OVERWRITE

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_failed_migration_exits_with_one(self, mock_service_class):
        mock_service = mock_service_class.return_value
        mock_service.migrate = AsyncMock(
            return_value=finished_result(errors=["Failed to migrate table Users: boom"])
        )

        result = self.runner.invoke(main, ['migrate', '-s', 'Server=sql1', '-t', 'host=pg'])

        assert result.exit_code == 1
        assert "Migration Failed" in result.output
        assert "Failed to migrate table Users: boom" in result.output

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_json_output(self, mock_service_class):
        mock_service = mock_service_class.return_value
        mock_service.migrate = AsyncMock(return_value=finished_result())

        result = self.runner.invoke(main, ['migrate', '-s', 'Server=sql1', '-t', 'host=pg', '-f', 'json'])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["tables"]["Users"]["rows_migrated"] == 3

    def test_missing_target_is_a_configuration_error(self):
        result = self.runner.invoke(main, ['migrate', '-s', 'Server=sql1'])

        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_invalid_batch_size(self):
        result = self.runner.invoke(main, ['migrate', '-s', 'Server=sql1', '-t', 'host=pg', '-b', '0'])

        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_unknown_mode_is_rejected_by_click(self):
        result = self.runner.invoke(main, ['migrate', '-s', 'Server=sql1', '-t', 'host=pg', '-m', 'merge'])

        assert result.exit_code == 2


class TestListTablesCommand:
    """Test the list-tables command."""

    def setup_method(self):
        self.runner = CliRunner()

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_lists_tables(self, mock_service_class):
        mock_service_class.return_value.list_tables = AsyncMock(return_value=['Orders', 'Users'])

        result = self.runner.invoke(main, ['list-tables', '-s', 'Server=sql1'])

        assert result.exit_code == 0
        assert "Orders" in result.output
        assert "Users" in result.output

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_lists_tables_as_json(self, mock_service_class):
        mock_service_class.return_value.list_tables = AsyncMock(return_value=['Orders', 'Users'])

        result = self.runner.invoke(main, ['list-tables', '-s', 'Server=sql1', '-f', 'json'])

        assert json.loads(result.output) == ['Orders', 'Users']

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_blank_connection_string(self, mock_service_class):
        mock_service_class.return_value.list_tables = AsyncMock(
            side_effect=ConfigurationError("Connection string cannot be empty")
        )

        result = self.runner.invoke(main, ['list-tables', '-s', ' '])

        assert result.exit_code == 2
        assert "Connection string cannot be empty" in result.output

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_driver_error(self, mock_service_class):
        mock_service_class.return_value.list_tables = AsyncMock(side_effect=RuntimeError("Login failed"))

        result = self.runner.invoke(main, ['list-tables', '-s', 'Server=sql1'])

        assert result.exit_code == 1
        assert "Login failed" in result.output


class TestTestConnectionCommand:
    """Test the test-connection command."""

    def setup_method(self):
        self.runner = CliRunner()

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_reachable_source(self, mock_service_class):
        mock_service = mock_service_class.return_value
        mock_service.test_connection = AsyncMock(return_value=True)

        result = self.runner.invoke(main, ['test-connection', '-c', 'Server=sql1'])

        assert result.exit_code == 0
        assert "Connected to source database" in result.output
        mock_service.test_connection.assert_called_once_with('Server=sql1', is_target=False)

    @patch('data_migrator.cli.main.DataMigrationService')
    def test_unreachable_target(self, mock_service_class):
        mock_service = mock_service_class.return_value
        mock_service.test_connection = AsyncMock(return_value=False)

        result = self.runner.invoke(main, ['test-connection', '-c', 'host=pg', '--target'])

        assert result.exit_code == 1
        assert "Could not connect to target database" in result.output
        mock_service.test_connection.assert_called_once_with('host=pg', is_target=True)
