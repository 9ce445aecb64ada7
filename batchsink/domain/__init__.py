"""
Domain package for batchsink.

Exports the record, schema, and typed-record definitions shared by the writer,
the sink implementations, and the engine.
"""

from batchsink.domain.models import Column, Record, TableSchema, TypedRecord

__all__ = [
    "Column",
    "Record",
    "TableSchema",
    "TypedRecord",
]
