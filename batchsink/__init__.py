"""
batchsink - batching bulk-insert writer for partitioned record streams.

Turns many schema-less records arriving over time into periodic, correctly
typed bulk inserts against one table:

- Per-partition buffers with a size threshold (`insert_size`)
- Schema-driven record mapping (missing fields become null, extras dropped)
- One bulk insert per flush; the buffer is cleared only on success
- Finite datasets end with a final flush; continuous streams keep their
  buffer across micro-batches and flush on threshold only
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from batchsink.config import Settings, WriterConfig, get_settings
from batchsink.domain.models import Column, Record, TableSchema, TypedRecord
from batchsink.engine import micro_batches, split_partitions, write_partitions
from batchsink.exceptions import (
    BatchSinkError,
    ConfigurationError,
    SchemaResolutionError,
    SinkError,
)
from batchsink.sink.abstract import ClientFactory, TableClient
from batchsink.sink.postgres import PostgresTableClient, open_client
from batchsink.utils.logging import configure_logging, get_logger
from batchsink.writer import (
    BatchWriter,
    FlushResult,
    Flusher,
    PartitionReport,
    PartitionWriter,
    RecordBuffer,
    SchemaCache,
    map_record,
)

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "WriterConfig",
    "get_settings",
    # Domain
    "Column",
    "Record",
    "TableSchema",
    "TypedRecord",
    # Errors
    "BatchSinkError",
    "ConfigurationError",
    "SchemaResolutionError",
    "SinkError",
    # Sink capabilities
    "ClientFactory",
    "TableClient",
    "PostgresTableClient",
    "open_client",
    # Writer core
    "BatchWriter",
    "FlushResult",
    "Flusher",
    "PartitionReport",
    "PartitionWriter",
    "RecordBuffer",
    "SchemaCache",
    "map_record",
    # Engine
    "micro_batches",
    "split_partitions",
    "write_partitions",
    # Logging
    "configure_logging",
    "get_logger",
]
