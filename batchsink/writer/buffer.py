"""
Partition-local record buffer.

A `RecordBuffer` is owned by exactly one writer for the lifetime of one
partition task (or one continuous stream) and is never shared, so it carries
no locking.
"""

from __future__ import annotations

from typing import Iterator, List

from batchsink.domain.models import Record


class RecordBuffer:
    """Ordered accumulator of pending records."""

    def __init__(self) -> None:
        self._records: List[Record] = []

    def append(self, record: Record) -> int:
        """Add `record` to the end and return the new size."""
        self._records.append(record)
        return len(self._records)

    def size(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()

    def snapshot(self) -> List[Record]:
        """Copy of the buffered records, in append order."""
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __repr__(self) -> str:
        return f"RecordBuffer(size={len(self._records)})"


__all__ = ["RecordBuffer"]
