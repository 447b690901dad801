"""
Result models for the Data Migrator.

A ``TableMigrationResult`` is produced per table by the table orchestrator;
a ``MigrationResult`` aggregates them for one run.
"""

from datetime import datetime, timedelta, UTC
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TableMigrationResult(BaseModel):
    """Result of migrating a single table."""
    source_table_name: str = ""
    target_table_name: str = ""
    rows_migrated: int = 0
    success: bool = False
    duration: timedelta = timedelta(0)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator('target_table_name')
    @classmethod
    def target_table_name_is_lower_case(cls, v):
        return v.lower()


class MigrationResult(BaseModel):
    """Result of a whole migration run."""
    start_time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    end_time: Optional[datetime] = None
    tables_processed: int = 0
    total_rows_migrated: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    table_results: Dict[str, TableMigrationResult] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        """True once the run is finalized with no accumulated errors."""
        return self.end_time is not None and not self.errors

    @property
    def duration(self) -> Optional[timedelta]:
        """Duration of the run, once finalized."""
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def add_table_result(self, table_result: TableMigrationResult) -> None:
        """Record a finished table and fold its counters into the totals."""
        self.table_results[table_result.source_table_name] = table_result
        self.tables_processed += 1
        self.total_rows_migrated += table_result.rows_migrated
        self.warnings.extend(table_result.warnings)
        if not table_result.success:
            self.errors.extend(table_result.errors)

    def finalize(self) -> None:
        """Stamp the end time."""
        self.end_time = datetime.now(UTC)

    def to_dict(self) -> Dict[str, Any]:
        """Summary suitable for JSON reporting."""
        duration = self.duration
        return {
            "success": self.success,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": duration.total_seconds() if duration is not None else None,
            "tables_processed": self.tables_processed,
            "total_rows_migrated": self.total_rows_migrated,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "tables": {
                name: {
                    "target_table_name": result.target_table_name,
                    "rows_migrated": result.rows_migrated,
                    "success": result.success,
                    "duration_seconds": result.duration.total_seconds(),
                    "errors": list(result.errors),
                    "warnings": list(result.warnings),
                }
                for name, result in self.table_results.items()
            },
        }
