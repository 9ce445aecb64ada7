"""
Result contracts returned by the flusher and the partition writers.

A flush never raises; it reports success or failure through `FlushResult` so
callers (the engine, the CLI, tests) can observe what happened while the
buffer-retention policy stays inside the flusher.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, TypedDict


class FlushResult(TypedDict, total=False):
    """
    Outcome of one flush attempt.

    Fields are optional to keep the contract lightweight; consumers should
    tolerate missing values.
    """

    ok: bool
    table: str
    records: int
    skipped: bool
    duration_seconds: float
    error: Optional[str]
    error_type: Optional[str]
    extra: Dict[str, Any]


@dataclass(frozen=True)
class PartitionReport:
    """
    Counters for one partition task (or one continuous stream).

    `pending` counts records still buffered when the task ended: records whose
    last flush failed, or, in continuous mode, records below the threshold.
    """

    partition: int
    seen: int = 0
    skipped: int = 0
    written: int = 0
    flushes: int = 0
    failed_flushes: int = 0
    pending: int = 0
    last_error: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.pending == 0


def summarize(reports: Iterable[PartitionReport]) -> Dict[str, int]:
    """Totals across partition reports."""
    totals = {
        "partitions": 0,
        "seen": 0,
        "skipped": 0,
        "written": 0,
        "flushes": 0,
        "failed_flushes": 0,
        "pending": 0,
    }
    for report in reports:
        totals["partitions"] += 1
        totals["seen"] += report.seen
        totals["skipped"] += report.skipped
        totals["written"] += report.written
        totals["flushes"] += report.flushes
        totals["failed_flushes"] += report.failed_flushes
        totals["pending"] += report.pending
    return totals


__all__ = ["FlushResult", "PartitionReport", "summarize"]
