"""
Local execution engine for batchsink.

Stands in for a distributed engine: it splits work into partitions, runs one
independent writer task per partition, and collects `PartitionReport`s.

Usage:
    from batchsink.engine import split_partitions, write_partitions

    reports = write_partitions(config, split_partitions(records, 4), processes=4)

The writer config is a frozen value and is pickled into each worker process;
every task builds its own flusher and buffer, so nothing mutable crosses task
boundaries.
"""

from __future__ import annotations

import multiprocessing as mp
from dataclasses import dataclass
from functools import partial
from itertools import islice
from typing import Iterable, Iterator, List, Optional, Sequence

from batchsink.config import WriterConfig
from batchsink.domain.models import Record
from batchsink.sink.abstract import ClientFactory
from batchsink.sink.postgres import open_client
from batchsink.utils.logging import configure_logging, get_logger
from batchsink.writer.flusher import Flusher
from batchsink.writer.results import PartitionReport, summarize
from batchsink.writer.writer import MicroBatch, PartitionWriter

log = get_logger(__name__)


@dataclass(frozen=True)
class PartitionTask:
    index: int
    records: Sequence[Optional[Record]]


def _init_worker(log_level: str, json_logs: bool) -> None:
    configure_logging(level=log_level, json_logs=json_logs)


def _run_partition(
    config: WriterConfig, client_factory: ClientFactory, task: PartitionTask
) -> PartitionReport:
    """
    Worker function: write one partition through its own buffer and flusher.
    """
    writer = PartitionWriter(config, Flusher(client_factory), partition=task.index)
    return writer.write_partition(task.records)


def split_partitions(
    records: Iterable[Optional[Record]], partitions: int
) -> List[List[Optional[Record]]]:
    """
    Round-robin `records` into `partitions` lists (empty partitions allowed).
    """
    if partitions < 1:
        raise ValueError("partitions must be >= 1")
    buckets: List[List[Optional[Record]]] = [[] for _ in range(partitions)]
    for position, record in enumerate(records):
        buckets[position % partitions].append(record)
    return buckets


def micro_batches(
    records: Iterable[Optional[Record]], batch_size: int
) -> Iterator[MicroBatch]:
    """
    Lazily chunk a (possibly unbounded) record iterable into single-partition
    micro-batches of at most `batch_size` records.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    iterator = iter(records)
    while True:
        chunk = list(islice(iterator, batch_size))
        if not chunk:
            return
        yield [chunk]


def write_partitions(
    config: WriterConfig,
    partitions: Iterable[Iterable[Optional[Record]]],
    processes: Optional[int] = None,
    client_factory: ClientFactory = open_client,
    log_level: str = "INFO",
    json_logs: bool = False,
) -> List[PartitionReport]:
    """
    Run one writer task per partition and return their reports in partition order.

    Parameters
    ----------
    config : WriterConfig
        Shipped by value to every task.
    partitions : iterable of iterables
        Finite partitions; null records are skipped by the writers.
    processes : int | None
        Worker processes. None or 1 runs the partitions sequentially in-process.
    client_factory : ClientFactory
        Must be picklable (module-level) when `processes` > 1.
    log_level, json_logs
        Logging setup applied inside worker processes.
    """
    tasks = [PartitionTask(index, list(records)) for index, records in enumerate(partitions)]
    worker = partial(_run_partition, config, client_factory)

    log.info(
        f"Writing {len(tasks)} partition(s) to table <{config.table}>",
        extra={"partitions": len(tasks), "processes": processes or 1},
    )

    if not processes or processes <= 1 or len(tasks) <= 1:
        reports = [worker(task) for task in tasks]
    else:
        # spawn: per-flush pools start threads, which do not survive fork cleanly
        context = mp.get_context("spawn")
        with context.Pool(
            processes=min(processes, len(tasks)),
            initializer=_init_worker,
            initargs=(log_level, json_logs),
        ) as pool:
            reports = pool.map(worker, tasks)

    totals = summarize(reports)
    log.info(
        f"Wrote {totals['written']} of {totals['seen'] - totals['skipped']} records",
        extra=totals,
    )
    if totals["pending"]:
        log.error(
            f"{totals['pending']} records were not written",
            extra={"pending": totals["pending"], "failed_flushes": totals["failed_flushes"]},
        )
    return reports


__all__ = [
    "PartitionTask",
    "micro_batches",
    "split_partitions",
    "write_partitions",
]
