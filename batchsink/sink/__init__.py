"""
Sink package for batchsink.

Re-exports the capability contracts and the psycopg-backed client so downstream
code can import from `batchsink.sink` directly.
"""

from batchsink.sink.abstract import AbstractTableClient, ClientFactory, TableClient
from batchsink.sink.postgres import PostgresTableClient, open_client

__all__ = [
    # Abstracts
    "AbstractTableClient",
    "ClientFactory",
    "TableClient",
    # Concrete clients
    "PostgresTableClient",
    "open_client",
]
