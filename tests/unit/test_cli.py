from __future__ import annotations

import io
import json
from functools import partial
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from batchsink import main
from batchsink.config import get_settings
from batchsink.engine import write_partitions
from batchsink.writer.flusher import Flusher

runner = CliRunner()

RECORD_COUNT = 5


@pytest.fixture(autouse=True)
def cli_env(monkeypatch):
    monkeypatch.setenv("SINK_HOST", "db.local")
    monkeypatch.setenv("SINK_TABLE", "events")
    monkeypatch.setenv("SINK_INSERT_SIZE", "2")
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_engine(monkeypatch, client_factory):
    monkeypatch.setattr(
        main, "write_partitions", partial(write_partitions, client_factory=client_factory)
    )


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    path = tmp_path / "records.jsonl"
    lines = [json.dumps({"a": n, "extra": "dropped"}) for n in range(RECORD_COUNT)]
    lines.insert(2, "null")
    lines.append("")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_info_shows_effective_settings():
    result = runner.invoke(main.app, ["info"])

    assert result.exit_code == 0
    assert "db.local" in result.output
    assert "table=events" in result.output
    assert "insert_size=2" in result.output


def test_load_writes_every_partition(records_file, fake_engine, fake_client):
    result = runner.invoke(main.app, ["load", str(records_file), "--partitions", "2"])

    assert result.exit_code == 0, result.output
    assert "@db.local:" in result.output
    assert "table=events insert_size=2" in result.output
    assert sorted(row[0] for row in fake_client.inserted_rows) == list(range(RECORD_COUNT))
    assert all(row[1:] == (None, None) for row in fake_client.inserted_rows)


def test_load_exits_non_zero_when_records_remain_pending(records_file, fake_engine, fake_client):
    fake_client.fail_insert = True

    result = runner.invoke(main.app, ["load", str(records_file)])

    assert result.exit_code == 1


def test_load_without_host_is_a_configuration_error(monkeypatch, records_file, fake_engine):
    monkeypatch.setenv("SINK_HOST", "")
    get_settings.cache_clear()

    result = runner.invoke(main.app, ["load", str(records_file)])

    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_stream_flushes_on_threshold_only(monkeypatch, client_factory, fake_client):
    class _Writer(main.BatchWriter):
        def __init__(self, config):
            super().__init__(config, Flusher(client_factory))

    monkeypatch.setattr(main, "BatchWriter", _Writer)
    stdin = "\n".join(json.dumps({"a": n}) for n in range(3)) + "\n"

    result = runner.invoke(main.app, ["stream", "--batch-lines", "1"], input=stdin)

    assert result.exit_code == 0, result.output
    # insert_size=2: one flush for the first two records, the third stays buffered.
    assert fake_client.inserted_rows == [(0, None, None), (1, None, None)]


def test_read_json_lines_yields_none_for_null_lines():
    lines = io.StringIO('{"a": 1}\n\nnull\n{"b": 2}\n')
    assert list(main.read_json_lines(lines)) == [{"a": 1}, None, {"b": 2}]


@pytest.mark.parametrize("line", ["{not json", "[1, 2]", "42"])
def test_read_json_lines_rejects_non_objects(line):
    with pytest.raises(typer.BadParameter, match="<stdin>:1"):
        list(main.read_json_lines(io.StringIO(line + "\n")))
