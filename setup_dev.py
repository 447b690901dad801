#!/usr/bin/env python3
"""
Development environment setup script for the Data Migrator.

Creates a virtual environment, installs the package with its development
extras and checks that an ODBC driver for SQL Server is available.
"""

import os
import subprocess
import sys
from pathlib import Path


def run_command(args: list, cwd: str = None) -> subprocess.CompletedProcess:
    """Run a command, report it and return the completed process (None on failure)."""
    command = " ".join(str(arg) for arg in args)
    try:
        result = subprocess.run(
            [str(arg) for arg in args],
            cwd=cwd,
            check=True,
            capture_output=True,
            text=True
        )
        print(f"✓ {command}")
        return result
    except subprocess.CalledProcessError as e:
        print(f"✗ {command}")
        print(f"Error: {e.stderr}")
        return None


def check_odbc_driver(python_path: Path) -> None:
    """Warn when no SQL Server ODBC driver is registered."""
    result = run_command([python_path, "-c", "import pyodbc; print('\\n'.join(pyodbc.drivers()))"])
    if result is None:
        print("! Could not query ODBC drivers (is unixODBC installed?)")
        return

    drivers = [line for line in result.stdout.splitlines() if "SQL Server" in line]
    if drivers:
        print(f"✓ ODBC drivers: {', '.join(drivers)}")
    else:
        print("! No SQL Server ODBC driver found; install 'ODBC Driver 18 for SQL Server'")


def main():
    """Set up development environment."""
    print("Setting up Data Migrator development environment...")

    if sys.version_info < (3, 11):
        print("Error: Python 3.11 or higher is required")
        sys.exit(1)

    print(f"✓ Python {sys.version_info.major}.{sys.version_info.minor} detected")

    venv_path = Path("venv")
    if not venv_path.exists():
        print("Creating virtual environment...")
        if run_command([sys.executable, "-m", "venv", "venv"]) is None:
            print("Failed to create virtual environment")
            sys.exit(1)
    else:
        print("✓ Virtual environment already exists")

    if os.name == 'nt':  # Windows
        activate_script = venv_path / "Scripts" / "activate"
        python_path = venv_path / "Scripts" / "python"
    else:
        activate_script = venv_path / "bin" / "activate"
        python_path = venv_path / "bin" / "python"

    print("Installing dependencies...")
    if run_command([python_path, "-m", "pip", "install", "--upgrade", "pip"]) is None:
        print("Failed to upgrade pip")
        sys.exit(1)

    if run_command([python_path, "-m", "pip", "install", "-e", ".[dev]"]) is None:
        print("Failed to install dependencies")
        sys.exit(1)

    check_odbc_driver(python_path)

    print("\n✓ Development environment setup complete!")
    print("\nNext steps:")
    print(f"1. Activate virtual environment: source {activate_script}")
    print("2. Run tests: pytest")
    print("3. Start CLI: data-migrator --help")
    print("\nDevelopment commands:")
    print("- Run tests with coverage: pytest --cov=data_migrator")
    print("- Format code: black data_migrator tests")
    print("- Lint: flake8 data_migrator tests")


if __name__ == "__main__":
    main()
