"""
Pytest configuration for batchsink.

Provides fixtures for:
- An in-memory fake table client (records every schema lookup and bulk insert)
- Writer configs for unit tests
- Database connection management for integration tests
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Generator, Iterator, List, Sequence, Tuple

import psycopg
import pytest

from batchsink.config import WriterConfig
from batchsink.domain.models import Column, TableSchema, TypedRecord
from batchsink.exceptions import SchemaResolutionError, SinkError

TEST_TABLE = "events"


class FakeTableClient:
    """
    Table client double: serves a fixed schema and keeps every insert call.

    Flip `fail_schema` / `fail_insert` to simulate an unknown table or a broken
    transport.
    """

    def __init__(self, schema: TableSchema) -> None:
        self.schema = schema
        self.fail_schema = False
        self.fail_insert = False
        self.schema_calls = 0
        self.inserts: List[Tuple[str, List[Tuple[Any, ...]], int, int]] = []

    def resolve_schema(self, table: str) -> TableSchema:
        self.schema_calls += 1
        if self.fail_schema:
            raise SchemaResolutionError(table, "table does not exist")
        return self.schema

    def bulk_insert(
        self,
        table: str,
        schema: TableSchema,
        records: Sequence[TypedRecord],
        sub_batch_size: int,
        threads: int,
    ) -> int:
        if self.fail_insert:
            raise SinkError(table, "connection reset by peer")
        self.inserts.append((table, [record.as_tuple() for record in records], sub_batch_size, threads))
        return len(records)

    @property
    def inserted_rows(self) -> List[Tuple[Any, ...]]:
        return [row for _, rows, _, _ in self.inserts for row in rows]


class FakeClientFactory:
    """
    Client factory double counting per-flush acquire/release.
    """

    def __init__(self, client: FakeTableClient) -> None:
        self.client = client
        self.acquired = 0
        self.released = 0
        self.configs: List[WriterConfig] = []

    @contextmanager
    def __call__(self, config: WriterConfig) -> Iterator[FakeTableClient]:
        self.acquired += 1
        self.configs.append(config)
        try:
            yield self.client
        finally:
            self.released += 1


@pytest.fixture
def schema() -> TableSchema:
    return TableSchema(
        table=TEST_TABLE,
        columns=[
            Column(name="a", type="integer"),
            Column(name="b", type="text"),
            Column(name="c", type="text"),
        ],
    )


@pytest.fixture
def fake_client(schema: TableSchema) -> FakeTableClient:
    return FakeTableClient(schema)


@pytest.fixture
def client_factory(fake_client: FakeTableClient) -> FakeClientFactory:
    return FakeClientFactory(fake_client)


@pytest.fixture
def make_config():
    """
    Factory for writer configs with test defaults.
    """

    def _make(**overrides: Any) -> WriterConfig:
        values: dict[str, Any] = {"host": "localhost", "table": TEST_TABLE}
        values.update(overrides)
        return WriterConfig(**values)

    return _make


@pytest.fixture(scope="session")
def test_config() -> WriterConfig:
    """
    Integration writer config; override via environment variables in CI.
    """
    return WriterConfig(
        host=os.getenv("SINK_HOST", "localhost"),
        port=int(os.getenv("SINK_PORT", "5432")),
        user=os.getenv("SINK_USER", "postgres"),
        password=os.getenv("SINK_PASSWORD", "postgres"),
        database=os.getenv("SINK_DATABASE", "postgres"),
        table="public.batchsink_events",
        insert_size=3,
        threads=2,
        connect_timeout=5,
    )


@pytest.fixture(scope="session")
def db_connection_available(test_config: WriterConfig) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    from batchsink.infrastructure.db_factory import build_dsn

    try:
        with psycopg.connect(build_dsn(test_config)) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_config: WriterConfig, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    from batchsink.infrastructure.db_factory import build_dsn

    conn = psycopg.connect(build_dsn(test_config), autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def events_table(db_connection: psycopg.Connection) -> Generator[str, None, None]:
    """
    Create an empty target table for each test and drop it afterwards.
    """
    with db_connection.cursor() as cur:
        cur.execute("DROP TABLE IF EXISTS public.batchsink_events;")
        cur.execute(
            """
            CREATE TABLE public.batchsink_events (
                id BIGINT,
                category TEXT,
                payload JSONB,
                amount NUMERIC(12, 2)
            );
            """
        )
    yield "public.batchsink_events"
    with db_connection.cursor() as cur:
        cur.execute("DROP TABLE IF EXISTS public.batchsink_events;")

