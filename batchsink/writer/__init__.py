"""
Writer package for batchsink.

Re-exports the buffering, mapping, flushing and orchestration pieces so
downstream code can import from `batchsink.writer` directly.
"""

from batchsink.writer.buffer import RecordBuffer
from batchsink.writer.flusher import Flusher, SchemaCache
from batchsink.writer.mapping import map_record, map_records
from batchsink.writer.results import FlushResult, PartitionReport, summarize
from batchsink.writer.writer import BatchWriter, PartitionWriter

__all__ = [
    "BatchWriter",
    "FlushResult",
    "Flusher",
    "PartitionReport",
    "PartitionWriter",
    "RecordBuffer",
    "SchemaCache",
    "map_record",
    "map_records",
    "summarize",
]
