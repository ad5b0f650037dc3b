"""
Rendering functions for depmirror output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List

from .domain.operation import OperationDetail, OperationStatus, OperationSummary

console = Console(stderr=True)

STATUS_STYLES = {
    OperationStatus.MIRRORED: "green",
    OperationStatus.UPDATED: "green",
    OperationStatus.EXISTS: "yellow",
    OperationStatus.RESOLUTION_FAILED: "red",
    OperationStatus.MIRROR_FAILED: "red",
    OperationStatus.UPDATE_FAILED: "red",
}


def render_details_table(details: List[OperationDetail], title: str = "Packages") -> None:
    """
    Render per-package outcomes as a pretty table.

    Args:
        details: Outcomes collected during a run
        title: Table title
    """
    if not details:
        console.print("[yellow]Nothing to do.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Package", style="cyan")
    table.add_column("Status")
    table.add_column("Location", style="dim")
    table.add_column("Error", style="red", overflow="fold")

    for detail in sorted(details, key=lambda d: d.name):
        style = STATUS_STYLES.get(detail.status, "white")
        table.add_row(
            detail.name,
            f"[{style}]{detail.status.value}[/{style}]",
            detail.url or detail.path or "",
            detail.error or "",
        )

    console.print(table)


def print_summary(summary: OperationSummary) -> None:
    """Print the counts of a run."""
    parts = [f"[bold]{summary.total}[/bold] total"]
    for status in OperationStatus:
        count = summary.counts.get(status.value, 0)
        if count:
            style = STATUS_STYLES.get(status, "white")
            parts.append(f"[{style}]{count} {status.value}[/{style}]")
    console.print(f"{summary.operation}: " + ", ".join(parts))
