"""Engine-agnostic description of source table columns."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ColumnDescriptor(BaseModel):
    """One source column, as read from the catalog."""
    name: str
    data_type: str
    is_nullable: bool = True
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    default_value: Optional[str] = None
    ordinal_position: int = 0
    is_primary_key: bool = False
    # 1-based position in the source primary key, for every key column
    key_position: Optional[int] = None

    model_config = ConfigDict(frozen=True)
