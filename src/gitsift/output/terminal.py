"""Rich terminal reporter — one row per file change, grouped by commit."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from gitsift.git.models import FileChange, FileStatus
from gitsift.output.result import AcquisitionResult

_STATUS_STYLE = {
    FileStatus.ADDED: "bold green",
    FileStatus.MODIFIED: "bold yellow",
    FileStatus.DELETED: "bold red",
    FileStatus.RENAMED: "bold cyan",
    FileStatus.COPIED: "bold cyan",
    FileStatus.MODE_CHANGED: "dim",
}


def _status_pill(change: FileChange) -> Text:
    label = "binary" if change.is_binary else change.status.value
    return Text(f" {label.upper()} ", style=_STATUS_STYLE.get(change.status, ""))


def render(
    result: AcquisitionResult,
    *,
    show_summary: bool = True,
    console: Console | None = None,
) -> None:
    """Print acquired file changes to the terminal using Rich."""
    console = console or Console(stderr=True)

    if not result.changes:
        console.print()
        console.print(f"[bold green]No changes found ({result.mode} mode).[/bold green]")
        if show_summary:
            _print_summary(console, result)
        return

    console.print()
    table = Table(
        title="gitsift Changes",
        show_lines=False,
        title_style="bold",
        border_style="dim",
    )
    table.add_column("Commit", style="yellow", width=10)
    table.add_column("Status", justify="center", width=14)
    table.add_column("File", style="magenta")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")

    for change in result.changes:
        path = change.path
        if change.old_path:
            path = f"{change.old_path} → {change.path}"
        table.add_row(
            change.commit.short_sha if change.commit else "-",
            _status_pill(change),
            path,
            str(sum(1 for _ in change.added_lines)),
            str(sum(1 for _ in change.removed_lines)),
        )

    console.print(table)

    if show_summary:
        _print_summary(console, result)


def _print_summary(console: Console, result: AcquisitionResult) -> None:
    console.print()
    console.print(f"[dim]Mode:[/dim]          {result.mode}")
    console.print(f"[dim]Commits:[/dim]       {result.total_commits}")
    console.print(f"[dim]Files:[/dim]         {result.total_files}")
    console.print(f"[dim]Added lines:[/dim]   {result.added_lines}")
    console.print(f"[dim]Removed lines:[/dim] {result.removed_lines}")
    console.print(f"[dim]Warnings:[/dim]      {len(result.warnings)}")
    console.print(f"[dim]Duration:[/dim]      {result.duration_ms:.0f}ms")
