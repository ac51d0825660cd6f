"""
hashkeep - CLI Interface.

A command-line interface for keeping a content-hash catalog of files and
using it to clean up and merge directory trees.

Usage Examples:
    # Catalog two trees with four fingerprinting threads
    hashkeep sync /data/photos /backup/photos --threads 4 --tag weekly

    # Drop catalog rows for files that no longer exist
    hashkeep clean info

    # Pick duplicate copies to move into the workspace's deleted folder
    hashkeep clean dup /data/photos /backup/photos

    # List clutter files without moving anything
    hashkeep clean dirty /data --list

    # Copy what /backup/photos lacks from /data/photos into it
    hashkeep merge --from /data/photos --to /backup/photos

    # Print both digests of one file
    hashkeep hash /data/photos/cat.jpg
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from hashkeep.config import WORKSPACE_ENV_VAR, load_settings
from hashkeep.errors import ConfigError, MergeAbortedError, StoreError
from hashkeep.models import SyncOptions
from hashkeep.orchestration import CatalogOrchestrator

__version__ = "0.1.0"

app = typer.Typer(
    name="hashkeep",
    help="Content-hash file catalog - sync, deduplicate, clean and merge directory trees.",
    add_completion=False,
    no_args_is_help=True,
)

clean_app = typer.Typer(
    help="Clean the catalog or the file system.",
    no_args_is_help=True,
)
app.add_typer(clean_app, name="clean")

# Rich console for consistent output formatting
console = Console()


@dataclass
class CliState:
    """Global options shared by every command."""
    workspace: Optional[Path] = None
    log_file: Optional[Path] = None
    verbose: bool = False


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"hashkeep v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send hashkeep log records to the terminal through Rich.

    Warnings are always shown; ``--verbose`` shows everything. The logger
    itself stays at INFO or lower so a run log can capture actions.
    """
    package_logger = logging.getLogger("hashkeep")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    package_logger.propagate = False


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        envvar=WORKSPACE_ENV_VAR,
        help="Workspace directory holding the catalog database.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        "-l",
        help="Path for a structured run log.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output.",
    ),
) -> None:
    """hashkeep - Content-hash file catalog."""
    configure_logging(verbose)
    ctx.obj = CliState(workspace=workspace, log_file=log_file, verbose=verbose)


def run_command(ctx: typer.Context, action: Callable[[CatalogOrchestrator], object]) -> None:
    """
    Build an orchestrator from the global options and run one command.

    Maps failures to exit codes: 1 for errors (including per-file errors
    reported in the summary) and 130 for an interrupt.
    """
    state: CliState = ctx.obj or CliState()

    try:
        settings = load_settings(state.workspace)
        orchestrator = CatalogOrchestrator(
            settings,
            log_file_path=state.log_file,
            verbose=state.verbose,
        )
        if state.verbose:
            console.print(f"[dim]Workspace: {settings.workspace_dir}[/dim]")

        summary = action(orchestrator)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except (ConfigError, StoreError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except MergeAbortedError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("[dim]Files copied before the failure were kept and cataloged.[/dim]")
        raise typer.Exit(1)

    except PermissionError as e:
        console.print(f"[red]Error:[/red] Permission denied - {e}")
        raise typer.Exit(1)

    except OSError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    errors = getattr(summary, "errors", None)
    if errors:
        console.print(f"\n[yellow]Completed with {len(errors)} error(s).[/yellow]")
        raise typer.Exit(1)


@app.command()
def sync(
    ctx: typer.Context,
    roots: List[Path] = typer.Argument(..., help="Directories or files to catalog."),
    threads: int = typer.Option(1, "--threads", "-t", min=1, help="Fingerprinting threads."),
    tag: str = typer.Option("", "--tag", "-T", help="Tag stamped onto new entries."),
    force: bool = typer.Option(
        False, "--force", "-F", help="Re-fingerprint files already in the catalog."
    ),
    blacklist: Optional[Path] = typer.Option(
        None,
        "--blacklist",
        "-B",
        help="File of paths or /regex/ patterns to exclude, one per line.",
    ),
    batch: int = typer.Option(10, "--batch", "-b", min=1, help="Entries per catalog write."),
) -> None:
    """
    Bring the catalog up to date with every file under ROOTS.

    Files already cataloged are skipped unless --force is given.
    """
    options = SyncOptions(workers=threads, tag=tag, force=force, batch_size=batch)
    run_command(
        ctx,
        lambda orchestrator: orchestrator.sync([str(r) for r in roots], options, blacklist),
    )


@clean_app.command("info")
def clean_info(ctx: typer.Context) -> None:
    """Remove catalog records whose files no longer exist."""
    run_command(ctx, lambda orchestrator: orchestrator.clean_info())


@clean_app.command("dup")
def clean_dup(
    ctx: typer.Context,
    roots: List[Path] = typer.Argument(..., help="Directories to search for duplicates."),
    deleted_save_dir: Optional[Path] = typer.Option(
        None,
        "--deleted-save-dir",
        "-d",
        help="Where removed copies are moved (default: the workspace's deleted folder).",
    ),
) -> None:
    """
    Find files with identical content and move the copies you select.
    """
    run_command(
        ctx,
        lambda orchestrator: orchestrator.clean_duplicates(
            [str(r) for r in roots], deleted_save_dir
        ),
    )


@clean_app.command("dirty")
def clean_dirty(
    ctx: typer.Context,
    roots: List[Path] = typer.Argument(..., help="Directories to search for dirty files."),
    list_only: bool = typer.Option(
        False, "--list", "-l", help="List dirty files only; move nothing."
    ),
    delete_to_dir: Optional[Path] = typer.Option(
        None,
        "--delete-to-dir",
        "-d",
        help="Where dirty files are moved (required unless --list).",
    ),
) -> None:
    """
    Find empty, tiny, hidden, OS metadata and Office temporary files.
    """
    run_command(
        ctx,
        lambda orchestrator: orchestrator.clean_dirty(
            [str(r) for r in roots], list_only=list_only, delete_to_dir=delete_to_dir
        ),
    )


@app.command()
def merge(
    ctx: typer.Context,
    source: Path = typer.Option(..., "--from", "-f", help="Directory to copy from."),
    target: Path = typer.Option(..., "--to", "-t", help="Directory to copy into."),
) -> None:
    """
    Copy every file of --from whose content --to lacks into a dated folder in --to.
    """
    run_command(ctx, lambda orchestrator: orchestrator.merge(source, target))


@app.command("hash")
def hash_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="File to fingerprint."),
) -> None:
    """Print the MD5 and BLAKE3 digests of FILE."""
    run_command(ctx, lambda orchestrator: orchestrator.hash_file(file))


if __name__ == "__main__":
    app()
