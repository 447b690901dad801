"""
Main CLI entry point for the Data Migrator.

This module provides the command-line interface using Click
with Rich formatting for the results.
"""

import asyncio
import json
import signal
import sys
from typing import Any, Dict, Optional, Tuple

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from data_migrator import __version__
from data_migrator.core.cancellation import CancellationToken
from data_migrator.core.exceptions import DataMigratorError
from data_migrator.database.connections import mask_connection_string
from data_migrator.models.config import MigrationConfig, MigrationMode
from data_migrator.models.results import MigrationResult
from data_migrator.orchestrator.migration_orchestrator import DataMigrationService
from data_migrator.utils.helpers import format_duration, load_config_file, merge_dicts
from data_migrator.utils.logging import setup_logging

console = Console()


def _build_config(
    config_file: Optional[str],
    sources: Tuple[str, ...],
    target: Optional[str],
    overrides: Dict[str, Any]
) -> MigrationConfig:
    """Combine the configuration file with command-line overrides."""
    data = load_config_file(config_file) if config_file else {}

    cli_data: Dict[str, Any] = {}
    if sources:
        cli_data['sources'] = list(sources)
    if target:
        cli_data['target'] = target
    options = {
        key: list(value) if isinstance(value, tuple) else value
        for key, value in overrides.items()
        if value not in (None, ())
    }
    if options:
        cli_data['options'] = options

    return MigrationConfig.model_validate(merge_dicts(data, cli_data))


async def _run_migration(service: DataMigrationService, config: MigrationConfig,
                         cancel_token: CancellationToken) -> MigrationResult:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_token.cancel)
    except (NotImplementedError, RuntimeError):
        pass
    return await service.migrate(config.sources, config.target, config.options, cancel_token)


def print_result(result: MigrationResult) -> None:
    """Print a migration result as a Rich table."""
    table = Table(title="Table Results")
    table.add_column("Source Table", style="cyan")
    table.add_column("Target Table", style="cyan")
    table.add_column("Rows", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Status")

    for name, table_result in result.table_results.items():
        status = "[green]OK[/green]" if table_result.success else "[red]FAILED[/red]"
        table.add_row(
            name,
            table_result.target_table_name,
            str(table_result.rows_migrated),
            format_duration(table_result.duration),
            status
        )

    console.print(table)

    summary = Text()
    summary.append(f"Tables processed: {result.tables_processed}\n")
    summary.append(f"Rows migrated: {result.total_rows_migrated}\n")
    if result.duration is not None:
        summary.append(f"Duration: {format_duration(result.duration)}\n")
    for warning in result.warnings:
        summary.append(f"Warning: {warning}\n", style="yellow")
    for error in result.errors:
        summary.append(f"Error: {error}\n", style="red")

    title = "Migration Succeeded" if result.success else "Migration Failed"
    console.print(Panel(summary, title=title, border_style="green" if result.success else "red"))


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--log-file', type=click.Path(), help='Write logs to this file')
@click.option('--structured-logs', is_flag=True, help='Emit JSON log records')
@click.pass_context
def main(ctx: click.Context, version: bool, verbose: bool, log_file: Optional[str], structured_logs: bool):
    """
    Data Migrator

    Copies tables from SQL Server databases into PostgreSQL.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['structured_logs'] = structured_logs

    if version:
        console.print(f"Data Migrator version {__version__}")
        sys.exit(0)

    setup_logging(
        level="DEBUG" if verbose else "INFO",
        log_file=log_file,
        structured_logging=structured_logs
    )

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@main.command()
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True), help='Configuration file path')
@click.option('--source', '-s', 'sources', multiple=True, help='Source SQL Server connection string')
@click.option('--target', '-t', help='Target PostgreSQL connection string')
@click.option('--prefix', help='Prefix added to target table names')
@click.option('--mode', '-m', type=click.Choice([mode.value for mode in MigrationMode]),
              help='How existing target data is handled')
@click.option('--batch-size', '-b', type=int, help='Rows per page')
@click.option('--include', 'include_tables', multiple=True, help='Only migrate these tables')
@click.option('--exclude', 'exclude_tables', multiple=True, help='Never migrate these tables')
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']), default='table',
              help='Output format')
@click.pass_context
def migrate(ctx: click.Context, config_file: Optional[str], sources: Tuple[str, ...], target: Optional[str],
            prefix: Optional[str], mode: Optional[str], batch_size: Optional[int],
            include_tables: Tuple[str, ...], exclude_tables: Tuple[str, ...], output_format: str):
    """Migrate tables from the sources into the target."""
    try:
        config = _build_config(config_file, sources, target, {
            'table_prefix': prefix,
            'mode': mode,
            'batch_size': batch_size,
            'include_tables': include_tables,
            'exclude_tables': exclude_tables,
        })
    except (ValidationError, ValueError, FileNotFoundError) as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(2)

    if ctx.obj.get('verbose', False):
        for source in config.sources:
            console.print(f"[dim]Source: {mask_connection_string(source)}[/dim]")
        console.print(f"[dim]Target: {mask_connection_string(config.target)}[/dim]")
        console.print(f"[dim]Mode: {config.options.mode.value}, batch size: {config.options.batch_size}[/dim]")

    service = DataMigrationService(structured_logging=ctx.obj.get('structured_logs', False))
    result = asyncio.run(_run_migration(service, config, CancellationToken()))

    if output_format == 'json':
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)

    sys.exit(0 if result.success else 1)


@main.command(name='list-tables')
@click.option('--source', '-s', required=True, help='Source SQL Server connection string')
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']), default='table',
              help='Output format')
def list_tables(source: str, output_format: str):
    """List the base tables of a source database."""
    service = DataMigrationService()
    try:
        tables = asyncio.run(service.list_tables(source))
    except DataMigratorError as e:
        console.print(f"[red]{e.message}[/red]")
        sys.exit(2)
    except Exception as e:
        console.print(f"[red]Failed to list tables:[/red] {e}")
        sys.exit(1)

    if output_format == 'json':
        click.echo(json.dumps(tables, indent=2))
        return

    table = Table(title=f"Tables ({len(tables)})")
    table.add_column("Table", style="cyan")
    for name in tables:
        table.add_row(name)
    console.print(table)


@main.command(name='test-connection')
@click.option('--connection', '-c', 'connection_string', required=True, help='Connection string to test')
@click.option('--target', 'is_target', is_flag=True, help='Test as the PostgreSQL target')
def test_connection(connection_string: str, is_target: bool):
    """Check that a database accepts connections."""
    service = DataMigrationService()
    ok = asyncio.run(service.test_connection(connection_string, is_target=is_target))
    role = "target" if is_target else "source"

    if ok:
        console.print(f"[green]Connected to {role} database[/green]")
    else:
        console.print(f"[red]Could not connect to {role} database[/red]")
        sys.exit(1)


if __name__ == '__main__':
    main()
