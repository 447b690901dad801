"""
Utilities module for the Data Migrator.

This module contains helper functions and logging utilities
used throughout the application.
"""

from data_migrator.utils.helpers import (
    generate_run_id,
    format_duration,
    load_config_file,
    merge_dicts,
)
from data_migrator.utils.logging import (
    setup_logging,
    get_logger,
    MigrationLogger,
)

__all__ = [
    # Helper functions
    "generate_run_id",
    "format_duration",
    "load_config_file",
    "merge_dicts",
    # Logging utilities
    "setup_logging",
    "get_logger",
    "MigrationLogger",
]
