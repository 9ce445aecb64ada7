"""
Database connection factory utilities for batchsink.

Two acquisition paths:
- `open_pool`: a short-lived psycopg_pool `ConnectionPool` sized by the writer's
  thread count. The flush path opens one per flush and closes it afterwards,
  so no connection outlives a flush or crosses partition tasks.
- `get_sync_connection`: a dedicated connection with tenacity retry, used for
  one-off CLI operations (schema inspection, connectivity checks). The flush
  path never retries on its own.
"""

from __future__ import annotations

import psycopg
from psycopg import Connection
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from batchsink.config import WriterConfig
from batchsink.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(config: WriterConfig) -> str:
    """Compose a libpq connection string from a writer config."""
    return make_conninfo(
        host=config.host,
        port=config.port,
        user=config.user,
        password=config.password,
        dbname=config.database,
        connect_timeout=max(1, int(round(config.connect_timeout))),
    )


def open_pool(config: WriterConfig) -> ConnectionPool:
    """
    Open a connection pool with at most `config.threads` connections.

    The caller owns the pool and must close it.
    """
    log.debug(
        "Opening connection pool",
        extra={"host": config.host, "port": config.port, "max_size": config.threads},
    )
    return ConnectionPool(
        conninfo=build_dsn(config),
        min_size=1,
        max_size=config.threads,
        timeout=config.connect_timeout,
        name=f"batchsink-{config.table}",
        open=True,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(config: WriterConfig) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(build_dsn(config))


__all__ = [
    "build_dsn",
    "get_sync_connection",
    "open_pool",
]
