"""
Configuration models for the Data Migrator.

This module defines Pydantic models for migration options and the
run configuration consumed by the CLI.
"""

from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field, field_validator, ConfigDict


class MigrationMode(str, Enum):
    """How pre-existing target data is treated before a table is populated."""
    INSERT = "insert"
    UPSERT = "upsert"
    OVERWRITE = "overwrite"
    TRUNCATE = "truncate"

    @property
    def ordinal(self) -> int:
        """Position of the mode in declaration order."""
        return list(MigrationMode).index(self)


class MigrationOptions(BaseModel):
    """Options for one migration run. Read-only to the engine."""
    table_prefix: str = ""
    mode: MigrationMode = MigrationMode.INSERT
    batch_size: int = Field(default=1000, gt=0)
    create_indexes: bool = True
    create_foreign_keys: bool = False
    # table -> {source column -> target column}
    column_mappings: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    exclude_tables: Set[str] = Field(default_factory=set)
    include_tables: Set[str] = Field(default_factory=set)
    connection_timeout: int = Field(default=30, gt=0)
    command_timeout: int = Field(default=300, gt=0)

    model_config = ConfigDict(frozen=True)

    @field_validator('mode', mode='before')
    @classmethod
    def mode_is_case_insensitive(cls, v):
        if isinstance(v, str):
            return v.lower()
        return v

    def should_migrate_table(self, table_name: str) -> bool:
        """Exclusion always wins; a non-empty include set is an allow-list."""
        if table_name in self.exclude_tables:
            return False
        if self.include_tables and table_name not in self.include_tables:
            return False
        return True

    def target_table_name(self, table_name: str) -> str:
        """Name of the target table for a source table."""
        return f"{self.table_prefix}{table_name}".lower()

    def target_column_name(self, table_name: str, column_name: str) -> str:
        """Name of the target column, honouring per-table column mappings."""
        return self.column_mappings.get(table_name, {}).get(column_name, column_name)


class MigrationConfig(BaseModel):
    """Complete run configuration: sources, target and options."""
    name: Optional[str] = None
    sources: List[str]
    target: str
    options: MigrationOptions = Field(default_factory=MigrationOptions)

    @field_validator('sources', mode='before')
    @classmethod
    def single_source_as_list(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    @field_validator('sources')
    @classmethod
    def sources_must_not_be_blank(cls, v):
        for conn_str in v:
            if not conn_str or not conn_str.strip():
                raise ValueError('Source connection string cannot be empty')
        return v

    @field_validator('target')
    @classmethod
    def target_must_not_be_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Target connection string cannot be empty')
        return v
