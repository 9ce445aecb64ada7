"""
Synthetic JSON Lines generator for batchsink.

Emits deterministic pseudo-random event records for the `batchsink load`
and `batchsink stream` commands. A configurable share of lines is `null`
(skipped by the writer), and records occasionally omit a field or carry an
extra one, so the schema mapping paths get exercised.
"""

from __future__ import annotations

import json
import random
import sys
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

import typer

app = typer.Typer(help="Generate synthetic JSON Lines records for batchsink.")

CATEGORIES = ["alpha", "beta", "gamma", "delta"]
ACTIONS = ["view", "click", "purchase", "impression"]


def _make_record(rng: random.Random, index: int, now: str) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": index,
        "created_at": now,
        "category": rng.choice(CATEGORIES),
        "payload": {
            "user_id": rng.randint(1, 1_000_000),
            "action": rng.choice(ACTIONS),
        },
        "amount": round(rng.uniform(1, 10_000), 2),
        "is_active": rng.choice([True, False]),
    }
    # Occasionally drop a column or add a field the table does not have.
    roll = rng.random()
    if roll < 0.05:
        del record["amount"]
    elif roll < 0.10:
        record["debug_tag"] = f"gen-{index}"
    return record


def _generate_records(
    out: TextIO, rows: int, seed: int, null_ratio: float = 0.0
) -> int:
    """
    Write `rows` lines to `out`; returns the number of non-null records.
    """
    rng = random.Random(seed)
    now = datetime.now(UTC).isoformat()
    written = 0
    for index in range(1, rows + 1):
        if null_ratio and rng.random() < null_ratio:
            out.write("null\n")
            continue
        out.write(json.dumps(_make_record(rng, index, now)) + "\n")
        written += 1
    return written


@app.command()
def main(
    rows: int = typer.Option(10_000, "--rows", "-r", help="Number of lines to generate."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    null_ratio: float = typer.Option(
        0.01, "--null-ratio", min=0.0, max=1.0, help="Share of lines written as null."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file (stdout when omitted)."
    ),
) -> None:
    """
    Generate synthetic records as JSON Lines.
    """
    start = time.perf_counter()
    if output is None:
        records = _generate_records(sys.stdout, rows=rows, seed=seed, null_ratio=null_ratio)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("w", encoding="utf-8") as f:
            records = _generate_records(f, rows=rows, seed=seed, null_ratio=null_ratio)

    duration = time.perf_counter() - start
    typer.echo(
        f"Generated {rows:,} lines ({records:,} records) in {duration:.2f}s",
        err=True,
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
