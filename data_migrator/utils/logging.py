"""
Logging for the Data Migrator.

This module provides console logging through Rich, optional rotating file
logging, structured JSON output and a per-run logger used by the
orchestrators.
"""

import json
import logging
import logging.handlers
import sys
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER_NAME = "data_migrator"


class LogLevel(str, Enum):
    """Log levels for structured logging."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogCategory(str, Enum):
    """Categories for structured logging."""
    SYSTEM = "system"
    MIGRATION = "migration"
    COPY = "copy"


@dataclass
class LogEntry:
    """Structured log entry with metadata."""
    timestamp: datetime = field(default_factory=datetime.now)
    level: LogLevel = LogLevel.INFO
    category: LogCategory = LogCategory.SYSTEM
    message: str = ""
    run_id: Optional[str] = None
    table_name: Optional[str] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary."""
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data

    def to_json(self) -> str:
        """Convert log entry to JSON string."""
        return json.dumps(self.to_dict(), default=str)


_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'exc_info', 'exc_text', 'stack_info', 'taskName', 'log_entry',
}


class StructuredFormatter(logging.Formatter):
    """Formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = getattr(record, 'log_entry', None)

        if log_entry and isinstance(log_entry, LogEntry):
            return log_entry.to_json()

        log_entry = LogEntry(
            timestamp=datetime.fromtimestamp(record.created),
            level=LogLevel(record.levelname),
            message=record.getMessage(),
            metadata={
                'logger': record.name,
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
            }
        )

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry.metadata[key] = value

        return log_entry.to_json()


PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _text_or_json(structured: bool) -> logging.Formatter:
    if structured:
        return StructuredFormatter()
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    rich_console: bool = True,
    structured_logging: bool = False,
    log_rotation: bool = True,
    max_log_size: int = 50 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure the ``data_migrator`` logger hierarchy.

    Console output goes to stderr through Rich unless JSON output is
    requested. A log file, when given, is rotated by size by default.

    Args:
        level: Name of the minimum level to emit
        log_file: Path of an extra log file
        rich_console: Render console output with Rich
        structured_logging: Emit one JSON object per record
        log_rotation: Rotate the log file once it reaches max_log_size
        max_log_size: Rotation threshold in bytes
        backup_count: Rotated files kept beside the active one

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    if rich_console and not structured_logging:
        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True
        )
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_text_or_json(structured_logging))
    logger.addHandler(console_handler)

    if not log_file:
        return logger

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    if log_rotation:
        file_handler: logging.Handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_log_size, backupCount=backup_count
        )
    else:
        file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(_text_or_json(structured_logging))
    logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class MigrationLogger:
    """Logger for one migration run, with structured table-level events."""

    def __init__(self, run_id: str, structured: bool = False):
        self.run_id = run_id
        self.structured = structured
        self.logger = get_logger(f"run.{run_id}")

    def _log(
        self,
        level: LogLevel,
        message: str,
        category: LogCategory = LogCategory.MIGRATION,
        table_name: Optional[str] = None,
        duration: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        log_method = getattr(self.logger, level.value.lower())
        if self.structured:
            log_entry = LogEntry(
                level=level,
                category=category,
                message=message,
                run_id=self.run_id,
                table_name=table_name,
                duration=duration,
                metadata=metadata or {}
            )
            log_method(message, extra={'log_entry': log_entry})
        else:
            log_method(message, extra=metadata or {})

    def info(self, message: str, category: LogCategory = LogCategory.MIGRATION,
             metadata: Optional[Dict[str, Any]] = None):
        self._log(LogLevel.INFO, message, category, metadata=metadata)

    def warning(self, message: str, category: LogCategory = LogCategory.MIGRATION,
                metadata: Optional[Dict[str, Any]] = None):
        self._log(LogLevel.WARNING, message, category, metadata=metadata)

    def table_start(self, table_name: str, target_table: str):
        """Log the start of a table migration."""
        self._log(
            LogLevel.INFO,
            f"Migrating table {table_name} -> {target_table}",
            table_name=table_name,
            metadata={'table_status': 'started', 'target_table': target_table}
        )

    def table_complete(self, table_name: str, rows: int, duration: float):
        """Log a successful table migration."""
        self._log(
            LogLevel.INFO,
            f"Migrated table {table_name}: {rows} rows in {duration:.2f}s",
            table_name=table_name,
            duration=duration,
            metadata={'table_status': 'completed', 'rows': rows}
        )

    def table_failed(self, table_name: str, errors: List[str], duration: float):
        """Log that a table failed; its errors are logged where they were handled."""
        self._log(
            LogLevel.WARNING,
            f"Table {table_name} failed after {duration:.2f}s ({len(errors)} error(s))",
            table_name=table_name,
            duration=duration,
            metadata={'table_status': 'failed'}
        )

    def page_copied(self, table_name: str, page_rows: int, total_rows: int):
        """Log one copied page."""
        self._log(
            LogLevel.DEBUG,
            f"{table_name}: copied {page_rows} rows ({total_rows} total)",
            category=LogCategory.COPY,
            table_name=table_name,
            metadata={'page_rows': page_rows, 'total_rows': total_rows}
        )
