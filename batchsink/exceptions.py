"""
Error taxonomy for batchsink.

Configuration problems are fatal and surface at construction time. Schema
resolution and sink failures are recoverable: the flusher catches them at the
flush boundary, logs them, and keeps the buffered records for the next attempt.
"""

from __future__ import annotations


class BatchSinkError(Exception):
    """Base class for all batchsink errors."""


class ConfigurationError(BatchSinkError, ValueError):
    """Missing or invalid writer configuration (e.g., empty host or table)."""


class SchemaResolutionError(BatchSinkError):
    """The target table is unknown or the database is unreachable."""

    def __init__(self, table: str, message: str) -> None:
        super().__init__(f"Unable to resolve schema for table <{table}>: {message}")
        self.table = table


class SinkError(BatchSinkError):
    """The bulk insert transport failed."""

    def __init__(self, table: str, message: str) -> None:
        super().__init__(f"Bulk insert into table <{table}> failed: {message}")
        self.table = table


__all__ = [
    "BatchSinkError",
    "ConfigurationError",
    "SchemaResolutionError",
    "SinkError",
]
