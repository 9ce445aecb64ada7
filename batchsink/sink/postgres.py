"""
PostgreSQL-wire implementation of the table client capabilities.

Schema resolution reads `information_schema.columns` in ordinal order. Bulk
insert splits the typed records into sub-batches and fans them out over the
per-flush pool, at most `threads` at a time. Sub-batches commit independently;
a failure in one does not roll back the others.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from functools import partial
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import psycopg
from psycopg import Connection, sql
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from batchsink.config import WriterConfig
from batchsink.domain.models import Column, TableSchema, TypedRecord
from batchsink.exceptions import SchemaResolutionError, SinkError
from batchsink.infrastructure.db_factory import open_pool
from batchsink.sink.abstract import AbstractTableClient
from batchsink.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_SCHEMA = "public"
JSON_TYPES = frozenset({"json", "jsonb"})

SCHEMA_SQL = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position;
"""


def split_table_name(table: str) -> Tuple[str, str]:
    """
    Split `schema.table` into its parts; unqualified names live in `public`.
    """
    schema_name, dot, table_name = table.partition(".")
    if not dot:
        return DEFAULT_SCHEMA, schema_name
    return schema_name, table_name


def build_insert_statement(table: str, schema: TableSchema) -> sql.Composed:
    """Parameterized INSERT covering every column of `schema`, in order."""
    return sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
        sql.Identifier(*split_table_name(table)),
        sql.SQL(", ").join(sql.Identifier(name) for name in schema.column_names),
        sql.SQL(", ").join(sql.Placeholder() * len(schema)),
    )


def chunked(rows: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of at most `size` items."""
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


def fetch_schema(conn: Connection, table: str) -> TableSchema:
    """
    Read the ordered column list of `table` over an open connection.

    Raises
    ------
    SchemaResolutionError
        If the query fails or the table has no columns (does not exist).
    """
    schema_name, table_name = split_table_name(table)
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL, (schema_name, table_name))
            rows = cur.fetchall()
    except psycopg.Error as exc:
        raise SchemaResolutionError(table, str(exc)) from exc

    if not rows:
        raise SchemaResolutionError(table, "table does not exist")

    return TableSchema(
        table=table,
        columns=[
            Column(name=name, type=data_type, nullable=is_nullable == "YES")
            for name, data_type, is_nullable in rows
        ],
    )


def _adapt(value: Any, column: Column) -> Any:
    if value is not None and column.type in JSON_TYPES:
        return Jsonb(value)
    return value


class PostgresTableClient(AbstractTableClient):
    """
    Table client backed by a psycopg connection pool.

    The client does not own the pool; `open_client` manages its lifetime.
    """

    def __init__(self, pool: ConnectionPool, timeout: Optional[float] = None) -> None:
        self._pool = pool
        self._timeout = timeout

    def resolve_schema(self, table: str) -> TableSchema:
        try:
            with self._pool.connection(timeout=self._timeout) as conn:
                return fetch_schema(conn, table)
        except psycopg.Error as exc:
            raise SchemaResolutionError(table, str(exc)) from exc

    def _insert_batch(self, statement: sql.Composed, rows: Sequence[Tuple[Any, ...]]) -> int:
        with self._pool.connection(timeout=self._timeout) as conn:
            with conn.cursor() as cur:
                cur.executemany(statement, rows)
        return len(rows)

    def bulk_insert(
        self,
        table: str,
        schema: TableSchema,
        records: Sequence[TypedRecord],
        sub_batch_size: int,
        threads: int,
    ) -> int:
        if not records:
            return 0

        statement = build_insert_statement(table, schema)
        rows: List[Tuple[Any, ...]] = [
            tuple(
                _adapt(value, column)
                for value, column in zip(record.as_tuple(), schema.columns)
            )
            for record in records
        ]
        batches = list(chunked(rows, max(sub_batch_size, 1)))
        workers = max(1, min(threads, len(batches)))
        insert = partial(self._insert_batch, statement)

        try:
            if workers == 1:
                written = sum(insert(batch) for batch in batches)
            else:
                with ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix="batchsink-insert"
                ) as executor:
                    written = sum(executor.map(insert, batches))
        except psycopg.Error as exc:
            raise SinkError(table, str(exc)) from exc

        log.debug(
            f"Inserted {written} rows into {table}",
            extra={"table": table, "sub_batches": len(batches), "workers": workers},
        )
        return written


@contextmanager
def open_client(config: WriterConfig) -> Iterator[PostgresTableClient]:
    """
    Default client factory: one pool per flush, closed when the flush ends.
    """
    pool = open_pool(config)
    try:
        yield PostgresTableClient(pool, timeout=config.connect_timeout)
    finally:
        pool.close()


__all__ = [
    "PostgresTableClient",
    "build_insert_statement",
    "chunked",
    "fetch_schema",
    "open_client",
    "split_table_name",
]
