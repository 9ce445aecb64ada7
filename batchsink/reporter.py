from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from batchsink.domain.models import TableSchema
from batchsink.utils.profiler import ProfileStats
from batchsink.writer.results import PartitionReport, summarize


def print_reports(
    reports: Sequence[PartitionReport],
    table_name: str,
    stats: Optional[ProfileStats] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Render partition reports as a rich table with a totals row.

    Partitions that ended with unwritten records are highlighted; the job
    itself never fails on flush errors, so this table is where they surface.
    """
    console = console or Console()

    if not reports:
        console.print("[yellow]No partitions were written.[/yellow]")
        return

    title = f"batchsink → {table_name}"
    if stats is not None:
        peak_mb = (stats.peak_rss_bytes or 0) / (1024 * 1024)
        title = (
            f"{title}\n[dim]{stats.duration_seconds:.2f}s │ "
            f"peak RSS {peak_mb:.1f} MB │ CPU {stats.cpu_percent or 0.0:.1f}%[/dim]"
        )

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Partition", style="cyan", justify="right", no_wrap=True)
    table.add_column("Seen", justify="right", style="magenta")
    table.add_column("Skipped (null)", justify="right", style="dim")
    table.add_column("Written", justify="right", style="bold green")
    table.add_column("Flushes", justify="right", style="blue")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Pending", justify="right", style="yellow")
    table.add_column("Last error", style="red", overflow="fold")

    for report in reports:
        pending = f"[bold red]{report.pending:,}[/bold red]" if report.pending else "0"
        table.add_row(
            str(report.partition),
            f"{report.seen:,}",
            f"{report.skipped:,}",
            f"{report.written:,}",
            str(report.flushes),
            str(report.failed_flushes),
            pending,
            report.last_error or "",
        )

    totals = summarize(reports)
    table.add_section()
    table.add_row(
        "Total",
        f"{totals['seen']:,}",
        f"{totals['skipped']:,}",
        f"{totals['written']:,}",
        str(totals["flushes"]),
        str(totals["failed_flushes"]),
        f"{totals['pending']:,}",
        "",
        style="bold",
    )
    if stats is not None:
        table.caption = f"{stats.rate(totals['written']):,.0f} records/s"

    console.print(table)


def print_schema(schema: TableSchema, console: Optional[Console] = None) -> None:
    """Render a resolved table schema."""
    console = console or Console()
    table = Table(title=f"Schema of {schema.table}", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Column", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Nullable", justify="center")

    for position, column in enumerate(schema.columns, start=1):
        table.add_row(str(position), column.name, column.type, "yes" if column.nullable else "no")

    console.print(table)
