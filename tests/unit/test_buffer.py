from __future__ import annotations

from batchsink.writer.buffer import RecordBuffer


def test_append_keeps_order_and_reports_size():
    buffer = RecordBuffer()
    assert buffer.append({"a": 1}) == 1
    assert buffer.append({"a": 2}) == 2
    assert buffer.size() == len(buffer) == 2
    assert list(buffer) == [{"a": 1}, {"a": 2}]


def test_clear_empties_the_buffer():
    buffer = RecordBuffer()
    buffer.append({"a": 1})
    buffer.clear()
    assert buffer.size() == 0
    assert not buffer


def test_snapshot_is_a_copy():
    buffer = RecordBuffer()
    buffer.append({"a": 1})
    snapshot = buffer.snapshot()
    buffer.clear()
    assert snapshot == [{"a": 1}]
