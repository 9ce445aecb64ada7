"""
Infrastructure package for batchsink.

Centralizes database connectivity concerns (connection strings, per-flush pools,
retrying one-off connections). Keep this layer focused on I/O and resource
management, decoupled from buffering and flush logic.
"""

from batchsink.infrastructure.db_factory import build_dsn, get_sync_connection, open_pool

__all__ = [
    "build_dsn",
    "get_sync_connection",
    "open_pool",
]
