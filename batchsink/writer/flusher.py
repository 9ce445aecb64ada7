"""
Flusher: drains a partition buffer into one bulk insert.

A flush acquires a fresh table client, resolves the table schema, maps every
buffered record onto it and performs a single bulk insert. The buffer is
cleared only after the insert succeeds. Any failure is logged and reported in
the returned `FlushResult`; the buffered records stay put and are combined with
later appends on the next attempt. There is no retry count, backoff, or bound
on buffer growth.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Optional

from batchsink.config import WriterConfig
from batchsink.domain.models import TableSchema
from batchsink.sink.abstract import ClientFactory, TableClient
from batchsink.sink.postgres import open_client
from batchsink.utils.logging import get_logger
from batchsink.writer.buffer import RecordBuffer
from batchsink.writer.mapping import map_records
from batchsink.writer.results import FlushResult

log = get_logger(__name__)


class SchemaCache:
    """
    Resolved schemas keyed by table name.

    An entry is dropped whenever an insert against its table fails, whatever
    the cause: transport errors invalidate it just like a schema mismatch. The
    next flush then resolves the schema again, which also picks up columns
    changed on the server.
    """

    def __init__(self) -> None:
        self._schemas: Dict[str, TableSchema] = {}

    def get(self, table: str) -> Optional[TableSchema]:
        return self._schemas.get(table)

    def put(self, schema: TableSchema) -> None:
        self._schemas[schema.table] = schema

    def invalidate(self, table: str) -> None:
        self._schemas.pop(table, None)

    def __contains__(self, table: object) -> bool:
        return table in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


class Flusher:
    """
    Drain buffers into the table described by a `WriterConfig`.

    Parameters
    ----------
    client_factory : ClientFactory
        Called once per flush with the config; must return a context manager
        yielding a `TableClient`. Defaults to the psycopg-backed `open_client`.
    schema_cache : SchemaCache, optional
        When given, schemas are reused across flushes instead of being resolved
        every time.
    """

    def __init__(
        self,
        client_factory: ClientFactory = open_client,
        schema_cache: Optional[SchemaCache] = None,
    ) -> None:
        self._client_factory = client_factory
        self._schema_cache = schema_cache

    def _resolve(self, client: TableClient, table: str) -> TableSchema:
        if self._schema_cache is not None:
            cached = self._schema_cache.get(table)
            if cached is not None:
                return cached
        schema = client.resolve_schema(table)
        if self._schema_cache is not None:
            self._schema_cache.put(schema)
        return schema

    def flush(self, buffer: RecordBuffer, config: WriterConfig) -> FlushResult:
        """
        Write every buffered record with one bulk insert.

        Never raises for schema or sink failures; see `FlushResult.ok`.
        An empty buffer is a no-op: no client is acquired and nothing is inserted.
        """
        table = config.table
        if not buffer:
            log.debug("Nothing to flush for table <%s>", table)
            return FlushResult(ok=True, table=table, records=0, skipped=True, duration_seconds=0.0)

        count = len(buffer)
        start = time.perf_counter()
        inserted = False
        try:
            log.debug("Acquiring table client", extra={"host": config.host, "port": config.port})
            with self._client_factory(config) as client:
                schema = self._resolve(client, table)

                log.info(f"Writing <{count}> records to table <{table}>")
                typed_records = map_records(buffer, schema)
                if log.isEnabledFor(logging.DEBUG):
                    for record in buffer:
                        log.debug("    Record: <%s>", record)

                try:
                    client.bulk_insert(
                        table, schema, typed_records, config.insert_size, config.threads
                    )
                except Exception:
                    if self._schema_cache is not None:
                        self._schema_cache.invalidate(table)
                    raise

                buffer.clear()
                inserted = True
        except Exception as exc:  # noqa: BLE001 - flush failures are reported, never raised
            duration = time.perf_counter() - start
            if inserted:
                log.warning(
                    f"Records written to <{table}> but releasing the client failed",
                    exc_info=True,
                )
                return FlushResult(
                    ok=True, table=table, records=count, duration_seconds=duration
                )
            log.error(
                "Problem writing record(s)",
                exc_info=True,
                extra={"table": table, "records": count, "error_type": type(exc).__name__},
            )
            return FlushResult(
                ok=False,
                table=table,
                records=count,
                duration_seconds=duration,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        return FlushResult(
            ok=True,
            table=table,
            records=count,
            duration_seconds=time.perf_counter() - start,
        )


__all__ = ["Flusher", "SchemaCache"]
