"""
Domain models for batchsink.

Records arrive schema-less (any mapping of field name to value). A flush
resolves the target table's `TableSchema` and turns each record into a
`TypedRecord` holding one value per column, in column order.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

Record = Mapping[str, Any]


class Column(BaseModel):
    """
    One field of a table schema.
    """

    name: str = Field(..., min_length=1, description="Column name.")
    type: str = Field("unknown", description="Database type name as reported by the server.")
    nullable: bool = Field(True, description="Whether the column accepts nulls.")

    model_config = {"frozen": True}


class TableSchema(BaseModel):
    """
    Ordered column list of a table. Column names are unique.
    """

    table: str = Field(..., min_length=1, description="Table the schema was resolved for.")
    columns: Tuple[Column, ...] = Field(..., description="Columns in table order.")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _unique_names(self) -> "TableSchema":
        seen: set[str] = set()
        for column in self.columns:
            if column.name in seen:
                raise ValueError(f"Duplicate column <{column.name}> in table <{self.table}>")
            seen.add(column.name)
        return self

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def __len__(self) -> int:
        return len(self.columns)


class TypedRecord(BaseModel):
    """
    A record aligned to a schema: one value per column, in column order.
    """

    values: Tuple[Optional[Any], ...] = Field(..., description="Column-ordered values.")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def as_tuple(self) -> Tuple[Optional[Any], ...]:
        return self.values


__all__ = ["Column", "Record", "TableSchema", "TypedRecord"]
