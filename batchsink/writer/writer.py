"""
Writers: route incoming records into a partition buffer and flush on threshold.

`PartitionWriter` owns one `RecordBuffer` and implements append-then-maybe-flush.
`BatchWriter` is the job-level entry point consumed by the execution engine:

- Finite datasets (`write`): every partition gets its own `PartitionWriter`
  and ends with one unconditional flush, so a tail below the threshold is
  still written.
- Continuous streams (`write_stream`): a single `PartitionWriter` is created
  when the stream starts and handed to every micro-batch. Its buffer carries
  over micro-batch boundaries and is flushed only when the threshold is
  crossed. Records below the threshold stay buffered until more data arrives;
  nothing flushes on a timer or at the end of a micro-batch.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from batchsink.config import WriterConfig
from batchsink.domain.models import Record
from batchsink.utils.logging import get_logger
from batchsink.writer.buffer import RecordBuffer
from batchsink.writer.flusher import Flusher
from batchsink.writer.results import FlushResult, PartitionReport

log = get_logger(__name__)

Partition = Iterable[Optional[Record]]
MicroBatch = Iterable[Partition]


class PartitionWriter:
    """
    Append-then-maybe-flush writer bound to one partition task.

    Not thread-safe; one task owns one writer.
    """

    def __init__(
        self,
        config: WriterConfig,
        flusher: Optional[Flusher] = None,
        partition: int = 0,
    ) -> None:
        self.config = config
        self.flusher = flusher or Flusher()
        self.partition = partition
        self.buffer = RecordBuffer()
        self._seen = 0
        self._skipped = 0
        self._written = 0
        self._flushes = 0
        self._failed_flushes = 0
        self._last_error: Optional[str] = None

    def write(self, record: Optional[Record]) -> Optional[FlushResult]:
        """
        Queue `record`; flush when the buffer reaches the configured insert size.

        Returns the flush result when a flush was triggered, else None. Null
        records are skipped and do not count toward the threshold.
        """
        self._seen += 1
        if record is None:
            self._skipped += 1
            return None

        size = self.buffer.append(record)
        log.debug("Added <%s> to write queue", record)

        if size >= self.config.insert_size:
            return self.flush()
        return None

    def flush(self) -> FlushResult:
        """Flush the buffer regardless of its size."""
        result = self.flusher.flush(self.buffer, self.config)
        if result.get("skipped"):
            return result

        self._flushes += 1
        if result.get("ok"):
            self._written += result.get("records", 0)
        else:
            self._failed_flushes += 1
            self._last_error = result.get("error")
        return result

    def write_all(self, records: Partition) -> None:
        """Write every record of `records` without a final flush."""
        for record in records:
            self.write(record)

    def write_partition(self, records: Partition) -> PartitionReport:
        """
        Write a finite partition, then flush whatever is left.
        """
        self.write_all(records)
        self.flush()
        return self.report()

    def write_micro_batch(self, micro_batch: MicroBatch) -> None:
        """
        Write every partition of one micro-batch. The buffer is not flushed at
        the micro-batch boundary.
        """
        for partition in micro_batch:
            self.write_all(partition)

    def report(self) -> PartitionReport:
        return PartitionReport(
            partition=self.partition,
            seen=self._seen,
            skipped=self._skipped,
            written=self._written,
            flushes=self._flushes,
            failed_flushes=self._failed_flushes,
            pending=len(self.buffer),
            last_error=self._last_error,
        )


class BatchWriter:
    """
    Entry point used by the execution engine to persist record sequences.

    Parameters
    ----------
    config : WriterConfig
        Validated connection and batching parameters.
    flusher : Flusher, optional
        Shared flusher (stateless unless it carries a schema cache). Defaults
        to a psycopg-backed flusher.
    """

    def __init__(self, config: WriterConfig, flusher: Optional[Flusher] = None) -> None:
        self.config = config
        self.flusher = flusher or Flusher()

    def partition_writer(self, partition: int = 0) -> PartitionWriter:
        return PartitionWriter(self.config, self.flusher, partition=partition)

    def write(self, dataset: Iterable[Partition]) -> List[PartitionReport]:
        """
        Write a finite dataset, one buffer per partition, each ending with a
        final flush.
        """
        reports: List[PartitionReport] = []
        for index, partition in enumerate(dataset):
            report = self.partition_writer(index).write_partition(partition)
            if report.pending:
                log.error(
                    f"Partition {index} finished with {report.pending} unwritten records",
                    extra={"partition": index, "pending": report.pending, "table": self.config.table},
                )
            reports.append(report)
        return reports

    def write_stream(
        self,
        micro_batches: Iterable[MicroBatch],
        writer: Optional[PartitionWriter] = None,
    ) -> PartitionReport:
        """
        Write a continuous stream of micro-batches through one persistent buffer.

        Only threshold crossings flush. When the stream ends, records still below
        the threshold are reported as pending and are not flushed.
        """
        writer = writer or self.partition_writer()
        for batch_number, micro_batch in enumerate(micro_batches):
            writer.write_micro_batch(micro_batch)
            log.debug(
                f"Micro-batch {batch_number} processed",
                extra={"batch": batch_number, "buffered": len(writer.buffer)},
            )

        report = writer.report()
        if report.pending:
            log.warning(
                f"Stream ended with {report.pending} buffered records below the flush threshold",
                extra={"pending": report.pending, "insert_size": self.config.insert_size},
            )
        return report


__all__ = ["BatchWriter", "MicroBatch", "Partition", "PartitionWriter"]
