"""Terminal output for hashkeep operations.

This module provides the CatalogTUI class, which renders operation headers,
duplicate groups, dirty file listings, progress bars and result summaries
with Rich. It never makes decisions; prompts live in the selector module.

Example:
    from hashkeep.ui import CatalogTUI

    tui = CatalogTUI()
    progress, callback = tui.create_progress_callback("Syncing", total=100)
    with progress:
        summary = pipeline.run(roots)
    tui.display_summary("Sync Summary", summary)
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from hashkeep.models import CatalogEntry, DirtyKind, DuplicateGroup

ProgressCallback = Callable[[int, int, str], None]


def printable(text: str) -> str:
    """Escape markup and replace undecodable file name bytes for display."""
    return escape(text.encode("utf-8", "surrogatepass").decode("utf-8", "replace"))


class CatalogTUI:
    """Rich-based output for the catalog operations.

    Args:
        console: Optional Rich Console instance for output. If None, creates
            a new Console. Pass a custom Console for testing (e.g., with
            StringIO file for output capture).

    Attributes:
        console: The Rich Console instance used for all output.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def display_header(self, title: str, details: Dict[str, str]) -> None:
        """Show a panel describing the operation about to run.

        Args:
            title: Panel title, e.g. "Sync".
            details: Parameter names and values, shown one per line.
        """
        lines = [f"{name}: {printable(value)}" for name, value in details.items()]
        self.console.print(Panel("\n".join(lines), title=title, border_style="blue"))

    def display_summary(self, title: str, summary) -> None:
        """Display final statistics of an operation.

        Works with any summary exposing ``as_rows()``, ``duration_seconds``
        and ``errors``. Summaries from cancelled or list-only runs are marked
        in the title.

        Args:
            title: Panel title.
            summary: One of the operation summary dataclasses.
        """
        if getattr(summary, "list_only", False):
            title += " [yellow][LIST ONLY][/yellow]"
        if getattr(summary, "cancelled", False):
            title += " [yellow][CANCELLED][/yellow]"

        border_style = "red" if summary.errors else "green"
        self.console.print(Panel(title, border_style=border_style))

        table = Table(show_header=True, header_style="bold")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")

        for label, value in summary.as_rows():
            table.add_row(label, value)
        table.add_row("Duration", self._format_duration(summary.duration_seconds))

        self.console.print(table)

        for attribute, label in (("deleted_dir", "Moved to"), ("backup_dir", "Copied to")):
            location = getattr(summary, attribute, None)
            if location is not None:
                self.console.print(f"{label}: [bold]{printable(str(location))}[/bold]")

        if summary.errors:
            self._display_errors(summary.errors)

    def display_duplicate_group(self, group: DuplicateGroup, group_number: int, total: int) -> None:
        """Show one set of content-identical files.

        Args:
            group: The duplicate group, members already sorted by path.
            group_number: 1-based position of this group.
            total: Number of groups found.
        """
        title = (
            f"Duplicate Group {group_number}/{total} - "
            f"{len(group.members)} copies, blake3 {group.fingerprint.blake3[:12]}"
        )

        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="cyan", width=3)
        table.add_column("Path", style="white")
        table.add_column("Size", justify="right")

        for idx, entry in enumerate(group.members, start=1):
            table.add_row(str(idx), printable(entry.path), self._format_size(entry.size))

        self.console.print(Panel(table, title=title, border_style="blue"))

    def display_dirty_listing(self, matches: Dict[DirtyKind, List[str]]) -> None:
        """List the dirty paths found, grouped by kind.

        Args:
            matches: Paths found per selected kind.
        """
        total = sum(len(paths) for paths in matches.values())
        if total == 0:
            self.console.print("[green]No dirty files found.[/green]")
            return

        table = Table(title=f"Dirty Files ({total:,})")
        table.add_column("Kind", style="magenta", no_wrap=True)
        table.add_column("Path", style="white")

        for kind, paths in matches.items():
            for path in paths:
                table.add_row(kind.label, printable(self._truncate_name(path, max_length=100)))

        self.console.print(table)

    def display_fingerprint(self, entry: CatalogEntry) -> None:
        """Print both digests of a file, one per line."""
        self.console.print(f"[bold]{printable(entry.path)}[/bold]")
        self.console.print(f"md5:    {entry.fingerprint.md5}", highlight=False)
        self.console.print(f"blake3: {entry.fingerprint.blake3}", highlight=False)
        self.console.print(f"size:   {entry.size:,} bytes", highlight=False)

    def create_progress_callback(
        self, description: str, total: Optional[int] = None
    ) -> Tuple[Progress, ProgressCallback]:
        """Create a progress bar and the callback operations report to.

        The caller owns the Progress lifecycle and must use it as a context
        manager around the operation.

        Args:
            description: Text shown next to the bar.
            total: Expected number of steps, or None until the first
                callback reports it.

        Returns:
            tuple[Progress, callback]: The callback accepts
            ``(done, total, path)`` and may be handed to any operation.

        Example:
            progress, callback = tui.create_progress_callback("Syncing", 100)
            with progress:
                SyncPipeline(store, walker, on_progress=callback).run(roots)
        """
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            TextColumn("{task.fields[current]}"),
            console=self.console,
        )
        task_id = progress.add_task(description, total=total, current="")

        def callback(done: int, total: int, path: str) -> None:
            progress.update(
                task_id, completed=done, total=total, current=printable(self._truncate_name(path))
            )

        return progress, callback

    def _display_errors(self, errors: Sequence[str]) -> None:
        """Display error messages in a separate panel."""
        max_display = 10
        displayed_errors = errors[:max_display]
        remaining = len(errors) - max_display

        error_text = "\n".join(f"- {printable(e)}" for e in displayed_errors)
        if remaining > 0:
            error_text += f"\n\n... and {remaining} more errors"

        self.console.print(
            Panel(error_text, title=f"Errors ({len(errors)})", border_style="red")
        )

    def _format_size(self, bytes_size: int) -> str:
        """Convert bytes to human-readable format (e.g. "10.5 MB")."""
        if bytes_size < 1024:
            return f"{bytes_size} B"
        elif bytes_size < 1024 * 1024:
            return f"{bytes_size / 1024:.1f} KB"
        elif bytes_size < 1024 * 1024 * 1024:
            return f"{bytes_size / (1024 * 1024):.1f} MB"
        else:
            return f"{bytes_size / (1024 * 1024 * 1024):.1f} GB"

    def _format_duration(self, seconds: float) -> str:
        """Convert seconds to e.g. "5m 23s"."""
        if seconds < 0:
            seconds = 0
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"

    def _truncate_name(self, name: str, max_length: int = 60) -> str:
        """Keep the end of long paths, which carries the file name."""
        if len(name) > max_length:
            return "..." + name[-(max_length - 3):]
        return name
