"""
Record mapping: schema-less records to column-aligned typed records.

Missing fields become None and unknown fields are dropped; mapping never fails
on record content.
"""

from __future__ import annotations

from typing import Iterable, List

from batchsink.domain.models import Record, TableSchema, TypedRecord


def map_record(record: Record, schema: TableSchema) -> TypedRecord:
    """
    Align `record` to `schema`: one value per column, in column order.
    """
    return TypedRecord.model_construct(
        values=tuple(record.get(name) for name in schema.column_names)
    )


def map_records(records: Iterable[Record], schema: TableSchema) -> List[TypedRecord]:
    names = schema.column_names
    return [
        TypedRecord.model_construct(values=tuple(record.get(name) for name in names))
        for record in records
    ]


__all__ = ["map_record", "map_records"]
