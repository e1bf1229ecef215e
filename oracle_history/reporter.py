from __future__ import annotations

from typing import List

from rich import box
from rich.console import Console
from rich.table import Table

from oracle_history.domain.models import HistoryMeta, ParsedQueryHistory

_MAX_CELL = 48


def _clip(text: str, width: int = _MAX_CELL) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def _execution_cell(record: ParsedQueryHistory) -> str:
    if record.execution_time_source == "none":
        return "N/A"
    suffix = " [dim](est.)[/dim]" if record.execution_time_source == "estimated" else ""
    return f"{record.execution_time:,}{suffix}"


def _confidence_cell(record: ParsedQueryHistory) -> str:
    suffix = " [dim](default)[/dim]" if record.confidence_source == "default" else ""
    return f"{record.confidence:.1f}{suffix}"


def print_history(records: List[ParsedQueryHistory], meta: HistoryMeta) -> None:
    """
    Render history records as a rich table, newest first.

    Estimated execution times and default confidences are marked so they
    are not mistaken for measurements.
    """
    console = Console()

    if not records:
        console.print(
            f"[yellow]No oracle history found across {meta.topics_count} topics.[/yellow]"
        )
        return

    title = (
        f"Oracle Query History\n[dim]Topics: {meta.topics_count} scanned "
        f"({meta.backend_topics} backend, {meta.known_topics} known)"
    )
    if meta.topics_failed:
        title += f" │ {len(meta.topics_failed)} unavailable"
    title += "[/dim]"

    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"Showing {len(records)} of {meta.total} (newest first)",
    )

    table.add_column("Timestamp", style="cyan", no_wrap=True)
    table.add_column("Query", style="white")
    table.add_column("Provider", style="magenta")
    table.add_column("Result", style="bold green")
    table.add_column("Exec (ms)", justify="right", style="yellow")
    table.add_column("Confidence %", justify="right", style="blue")
    table.add_column("OK", justify="center")
    table.add_column("Topic / Seq", style="dim", no_wrap=True)

    for record in records:
        table.add_row(
            record.timestamp,
            _clip(record.query),
            record.provider,
            _clip(record.result),
            _execution_cell(record),
            _confidence_cell(record),
            "[green]✓[/green]" if record.success else "[red]✗[/red]",
            f"{record.topic_id} #{record.sequence_number}",
        )

    console.print(table)
