from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import IO, Iterator, Optional

import psycopg
import typer

from batchsink.config import Settings, WriterConfig, get_settings
from batchsink.domain.models import Record
from batchsink.engine import micro_batches, split_partitions, write_partitions
from batchsink.exceptions import ConfigurationError, SchemaResolutionError
from batchsink.infrastructure.db_factory import get_sync_connection
from batchsink.reporter import print_reports, print_schema
from batchsink.sink.postgres import fetch_schema
from batchsink.utils.logging import configure_logging
from batchsink.utils.profiler import profile_block
from batchsink.writer.writer import BatchWriter

app = typer.Typer(help="Batching bulk-insert writer for partitioned record streams.")


def _writer_config(
    settings: Settings,
    host: Optional[str] = None,
    table: Optional[str] = None,
    insert_size: Optional[int] = None,
    threads: Optional[int] = None,
) -> WriterConfig:
    try:
        return settings.writer_config(
            host=host, table=table, insert_size=insert_size, threads=threads
        )
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def read_json_lines(stream: IO[str], source: str = "<stdin>") -> Iterator[Optional[Record]]:
    """
    Yield one record per non-blank JSON line; `null` lines yield None.
    """
    for line_number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            value = json.loads(line)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"{source}:{line_number}: invalid JSON ({exc.msg})") from exc
        if value is not None and not isinstance(value, dict):
            raise typer.BadParameter(
                f"{source}:{line_number}: expected a JSON object or null, got {type(value).__name__}"
            )
        yield value


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.sink_user}@{settings.sink_host or '<unset>'}:{settings.sink_port}"
        f"/{settings.sink_database} | table={settings.sink_table or '<unset>'} "
        f"insert_size={settings.sink_insert_size} threads={settings.sink_threads}"
    )


@app.command()
def schema(
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Override SINK_TABLE."),
    host: Optional[str] = typer.Option(None, "--host", help="Override SINK_HOST."),
) -> None:
    """
    Resolve and print the target table's column list.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    config = _writer_config(settings, host=host, table=table)

    try:
        with get_sync_connection(config) as conn:
            resolved = fetch_schema(conn, config.table)
    except (SchemaResolutionError, psycopg.OperationalError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    print_schema(resolved)


@app.command()
def load(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON Lines input file."),
    partitions: int = typer.Option(4, "--partitions", "-n", min=1, help="Number of partitions."),
    processes: int = typer.Option(
        1, "--processes", "-p", min=1, help="Worker processes (1 runs in-process)."
    ),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Override SINK_TABLE."),
    host: Optional[str] = typer.Option(None, "--host", help="Override SINK_HOST."),
    insert_size: Optional[int] = typer.Option(
        None, "--insert-size", "-b", help="Override SINK_INSERT_SIZE (flush threshold)."
    ),
    threads: Optional[int] = typer.Option(None, "--threads", help="Override SINK_THREADS."),
) -> None:
    """
    Write a JSON Lines file as a finite, partitioned dataset.

    Exits with code 1 when any partition ended with unwritten records.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    config = _writer_config(settings, host, table, insert_size, threads)
    typer.echo(f"Target: {config.describe()}")

    with path.open("r", encoding="utf-8") as f:
        dataset = split_partitions(read_json_lines(f, source=str(path)), partitions)

    with profile_block("load") as stats:
        reports = write_partitions(
            config,
            dataset,
            processes=processes,
            log_level=settings.log_level,
            json_logs=settings.log_json,
        )

    print_reports(reports, config.table, stats=stats)
    if not all(report.complete for report in reports):
        raise typer.Exit(code=1)


@app.command()
def stream(
    batch_lines: int = typer.Option(
        100, "--batch-lines", "-k", min=1, help="Input lines per micro-batch."
    ),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Override SINK_TABLE."),
    host: Optional[str] = typer.Option(None, "--host", help="Override SINK_HOST."),
    insert_size: Optional[int] = typer.Option(
        None, "--insert-size", "-b", help="Override SINK_INSERT_SIZE (flush threshold)."
    ),
    threads: Optional[int] = typer.Option(None, "--threads", help="Override SINK_THREADS."),
) -> None:
    """
    Write JSON Lines from stdin as a continuous stream of micro-batches.

    Records only flush when the threshold is crossed; anything still buffered
    when stdin closes is reported as pending.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    config = _writer_config(settings, host, table, insert_size, threads)
    typer.echo(f"Target: {config.describe()}")

    writer = BatchWriter(config)
    with profile_block("stream") as stats:
        report = writer.write_stream(micro_batches(read_json_lines(sys.stdin), batch_lines))

    print_reports([report], config.table, stats=stats)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
