"""
Command-line interface for the Data Migrator.
"""

from data_migrator.cli.main import main

__all__ = ["main"]
