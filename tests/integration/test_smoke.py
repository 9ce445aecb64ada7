"""
Integration tests for batchsink against a real PostgreSQL instance.

These verify that:
1. Schema resolution reads the live table definition
2. Threshold and final flushes land every non-null record
3. Failures (unknown table) keep records buffered instead of raising

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
from typing import List, Optional

import psycopg
import pytest

from batchsink.config import WriterConfig
from batchsink.engine import split_partitions, write_partitions
from batchsink.sink.postgres import open_client
from batchsink.writer.writer import BatchWriter

RECORD_COUNT = 10
PARTITION_COUNT = 3

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


def _count_rows(conn: psycopg.Connection, table: str) -> int:
    with conn.cursor() as cur:
        cur.execute(f"SELECT COUNT(*) FROM {table};")
        row = cur.fetchone()
    return row[0] if row else 0


def _records(count: int) -> List[Optional[dict]]:
    records: List[Optional[dict]] = []
    for n in range(count):
        records.append(
            {
                "id": n,
                "category": "alpha" if n % 2 else "beta",
                "payload": {"n": n},
                "amount": n * 1.5,
                "not_a_column": "dropped",
            }
        )
    records.insert(1, None)
    return records


class TestSchemaResolution:
    def test_resolves_live_columns_in_order(self, test_config: WriterConfig, events_table: str):
        with open_client(test_config) as client:
            schema = client.resolve_schema(events_table)

        assert schema.column_names == ("id", "category", "payload", "amount")
        assert schema.columns[2].type == "jsonb"


class TestBatchMode:
    def test_every_non_null_record_is_written(
        self, test_config: WriterConfig, events_table: str, db_connection: psycopg.Connection
    ):
        reports = BatchWriter(test_config).write([_records(RECORD_COUNT)])

        assert reports[0].written == RECORD_COUNT
        assert reports[0].skipped == 1
        assert reports[0].pending == 0
        assert _count_rows(db_connection, events_table) == RECORD_COUNT

    def test_partitions_write_independently(
        self, test_config: WriterConfig, events_table: str, db_connection: psycopg.Connection
    ):
        reports = write_partitions(
            test_config, split_partitions(_records(RECORD_COUNT), PARTITION_COUNT)
        )

        assert len(reports) == PARTITION_COUNT
        assert sum(report.written for report in reports) == RECORD_COUNT
        assert _count_rows(db_connection, events_table) == RECORD_COUNT

    def test_missing_fields_are_stored_as_null(
        self, test_config: WriterConfig, events_table: str, db_connection: psycopg.Connection
    ):
        BatchWriter(test_config).write([[{"id": 1}]])

        with db_connection.cursor() as cur:
            cur.execute(f"SELECT id, category, payload, amount FROM {events_table};")
            assert cur.fetchall() == [(1, None, None, None)]


class TestFailureRetention:
    def test_unknown_table_keeps_records_pending(
        self, test_config: WriterConfig, events_table: str
    ):
        config = test_config.model_copy(update={"table": "public.batchsink_missing"})

        reports = BatchWriter(config).write([_records(2)])

        assert reports[0].written == 0
        assert reports[0].pending == 2
        assert reports[0].failed_flushes >= 1
        assert "does not exist" in (reports[0].last_error or "")
