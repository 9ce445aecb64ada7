"""
Capability contracts consumed from the database client.

The writer core only needs two things from a database: resolving a table's
ordered column list and bulk inserting typed records. Concrete clients (e.g.,
the psycopg-backed `PostgresTableClient`) implement the `TableClient` protocol;
a `ClientFactory` hands out one client per flush and releases it afterwards.
"""

from __future__ import annotations

import abc
from typing import Callable, ContextManager, Protocol, Sequence, runtime_checkable

from batchsink.config import WriterConfig
from batchsink.domain.models import TableSchema, TypedRecord


@runtime_checkable
class TableClient(Protocol):
    """
    Database capabilities required by the flusher.
    """

    def resolve_schema(self, table: str) -> TableSchema:
        """
        Return the ordered column list of `table`.

        Raises
        ------
        SchemaResolutionError
            If the table does not exist or the database is unreachable.
        """
        ...

    def bulk_insert(
        self,
        table: str,
        schema: TableSchema,
        records: Sequence[TypedRecord],
        sub_batch_size: int,
        threads: int,
    ) -> int:
        """
        Insert `records` into `table`, `sub_batch_size` rows per internal batch.

        Returns
        -------
        int
            Number of records written.

        Raises
        ------
        SinkError
            If the insert transport fails.
        """
        ...


ClientFactory = Callable[[WriterConfig], ContextManager[TableClient]]


class AbstractTableClient(abc.ABC):
    """
    Optional ABC helper for class-based clients.
    """

    @abc.abstractmethod
    def resolve_schema(self, table: str) -> TableSchema:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def bulk_insert(
        self,
        table: str,
        schema: TableSchema,
        records: Sequence[TypedRecord],
        sub_batch_size: int,
        threads: int,
    ) -> int:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = [
    "AbstractTableClient",
    "ClientFactory",
    "TableClient",
]
