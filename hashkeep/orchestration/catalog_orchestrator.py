"""CatalogOrchestrator for running hashkeep commands end to end.

This module provides the CatalogOrchestrator class, which wires the workspace
settings, the catalog store, the operations, the TUI and the optional run log
together for each command. Arguments are validated before the catalog is
opened, and the catalog is closed after the operation returns.

Example:
    from hashkeep.config import load_settings
    from hashkeep.orchestration import CatalogOrchestrator

    orchestrator = CatalogOrchestrator(load_settings())
    summary = orchestrator.sync(["/data/photos"], SyncOptions(workers=4))
"""

import logging
import os
import time
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from hashkeep.catalog import CatalogStore, SqliteCatalogStore
from hashkeep.config import Settings
from hashkeep.errors import ConfigError
from hashkeep.models import (
    CatalogEntry,
    CleanSummary,
    DirtySummary,
    DuplicateSummary,
    MergeSummary,
    SyncOptions,
    SyncSummary,
)
from hashkeep.operations import (
    CatalogCleaner,
    DirtyCleaner,
    DuplicateResolver,
    MergeEngine,
    SyncPipeline,
)
from hashkeep.orchestration.run_logger import RunLogger
from hashkeep.scanning import ExclusionRules, TreeWalker, build_entry
from hashkeep.ui import CatalogTUI, RichSelector, Selector

logger = logging.getLogger(__name__)

SummaryT = TypeVar("SummaryT")


class CatalogOrchestrator:
    """Runs hashkeep commands against one workspace.

    Each public method is one CLI command. It validates its arguments, opens
    the catalog, runs the operation with progress display and optional run
    logging, shows the summary and returns it.

    Attributes:
        settings: Resolved workspace locations.
        log_file_path: Optional run log file.
        verbose: Whether to display extra details.
    """

    def __init__(
        self,
        settings: Settings,
        selector: Optional[Selector] = None,
        tui: Optional[CatalogTUI] = None,
        log_file_path: Optional[Path] = None,
        verbose: bool = False,
    ) -> None:
        """Initialize the CatalogOrchestrator.

        Args:
            settings: Workspace settings from ``load_settings``.
            selector: Decision-maker for interactive commands. Defaults to a
                RichSelector sharing the TUI's console.
            tui: Output renderer. Defaults to a new CatalogTUI.
            log_file_path: If given, a run log is written there.
            verbose: If True, display additional details.
        """
        self.settings = settings
        self.log_file_path = log_file_path
        self.verbose = verbose
        self._tui = tui or CatalogTUI()
        self._selector = selector or RichSelector(self._tui.console)

    def sync(
        self,
        roots: Sequence[str],
        options: Optional[SyncOptions] = None,
        blacklist: Optional[Path] = None,
    ) -> SyncSummary:
        """Bring the catalog up to date with every file under ``roots``.

        Raises:
            ConfigError: If a root is missing or the blacklist is invalid.
            StoreError: If the catalog fails.
        """
        roots = self._validate_roots(roots)
        options = options or SyncOptions()
        exclusion = ExclusionRules.from_file(blacklist)
        walker = self._create_walker(exclusion)

        parameters = {
            "Roots": ", ".join(roots),
            "Threads": str(options.workers),
            "Batch size": str(options.batch_size),
            "Tag": options.tag or "(none)",
            "Force": str(options.force),
            "Blacklist": f"{blacklist} ({len(exclusion)} rules)" if blacklist else "(none)",
        }
        self._tui.display_header("Sync", parameters)

        def work() -> SyncSummary:
            with self._open_store() as store:
                progress, callback = self._tui.create_progress_callback("Syncing")
                with progress:
                    return SyncPipeline(store, walker, options, on_progress=callback).run(roots)

        return self._execute("sync", "Sync", parameters, work)

    def clean_info(self) -> CleanSummary:
        """Drop catalog rows whose files no longer exist."""
        parameters = {"Catalog": str(self.settings.db_path)}
        self._tui.display_header("Clean Catalog", parameters)

        def work() -> CleanSummary:
            with self._open_store() as store:
                progress, callback = self._tui.create_progress_callback("Checking records")
                with progress:
                    return CatalogCleaner(store, on_progress=callback).run()

        return self._execute("clean info", "Clean Catalog", parameters, work)

    def clean_duplicates(
        self, roots: Sequence[str], deleted_dir: Optional[Path] = None
    ) -> DuplicateSummary:
        """Find duplicate files under ``roots`` and move the selected copies.

        Args:
            roots: Directories to scan.
            deleted_dir: Where removed copies go; defaults to the workspace's
                deleted folder.
        """
        roots = self._validate_roots(roots)
        deleted_dir = Path(deleted_dir).expanduser().absolute() if deleted_dir else self.settings.deleted_dir
        walker = self._create_walker()

        parameters = {"Roots": ", ".join(roots), "Deleted files folder": str(deleted_dir)}
        self._tui.display_header("Remove Duplicates", parameters)

        def work() -> DuplicateSummary:
            started = time.monotonic()
            with self._open_store() as store:
                progress, callback = self._tui.create_progress_callback("Fingerprinting")
                resolver = DuplicateResolver(
                    store,
                    walker,
                    self._selector,
                    deleted_dir,
                    on_progress=callback,
                    on_group=self._tui.display_duplicate_group,
                )
                summary = DuplicateSummary(deleted_dir=deleted_dir)

                # Prompts must not run under a live progress bar
                with progress:
                    groups = resolver.find_groups(roots, summary)

                if not groups:
                    self._tui.console.print("[green]No duplicate files found.[/green]")
                resolver.resolve_groups(groups, roots, summary)
            summary.duration_seconds = time.monotonic() - started
            return summary

        return self._execute("clean dup", "Remove Duplicates", parameters, work)

    def clean_dirty(
        self,
        roots: Sequence[str],
        list_only: bool = False,
        delete_to_dir: Optional[Path] = None,
    ) -> DirtySummary:
        """List or move clutter files and empty folders under ``roots``.

        Raises:
            ConfigError: If a root is missing, or ``delete_to_dir`` is
                missing when not listing.
        """
        roots = self._validate_roots(roots)
        if not list_only and delete_to_dir is None:
            raise ConfigError("--delete-to-dir is required unless --list is given")
        if delete_to_dir is not None:
            delete_to_dir = Path(delete_to_dir).expanduser().absolute()

        parameters = {
            "Roots": ", ".join(roots),
            "Mode": "list only" if list_only else f"move to {delete_to_dir}",
        }
        self._tui.display_header("Clean Dirty Files", parameters)

        def work() -> DirtySummary:
            cleaner = DirtyCleaner(self._selector, on_listing=self._tui.display_dirty_listing)
            return cleaner.run(roots, list_only=list_only, delete_to_dir=delete_to_dir)

        return self._execute("clean dirty", "Clean Dirty Files", parameters, work)

    def merge(self, source: Path, target: Path, today: Optional[date] = None) -> MergeSummary:
        """Copy content from ``source`` that ``target`` lacks into ``target``.

        Raises:
            ConfigError: If the directories are invalid.
            MergeAbortedError: If a copy fails.
        """
        source_str, target_str = self._validate_roots([source, target])
        parameters = {"Source": source_str, "Target": target_str}
        self._tui.display_header("Merge", parameters)

        def work() -> MergeSummary:
            with self._open_store() as store:
                progress, callback = self._tui.create_progress_callback("Copying")
                with progress:
                    engine = MergeEngine(store, self._create_walker(), on_progress=callback, today=today)
                    return engine.run(source_str, target_str)

        return self._execute("merge", "Merge", parameters, work)

    def hash_file(self, path: Path) -> CatalogEntry:
        """Fingerprint one file and print its digests; the catalog is untouched.

        Raises:
            ConfigError: If ``path`` is not a regular file.
            OSError: If the file cannot be read.
        """
        if not os.path.isfile(path):
            raise ConfigError(f"Not a file: {path}")
        entry = build_entry(path)
        self._tui.display_fingerprint(entry)
        return entry

    def _execute(
        self,
        command: str,
        title: str,
        parameters: Dict[str, str],
        work: Callable[[], SummaryT],
    ) -> SummaryT:
        """Run ``work`` inside the optional run log and display its summary."""
        run_log = self._create_run_log(command)

        if run_log is None:
            summary = work()
        else:
            with run_log:
                run_log.log_header()
                with run_log.operation(title, parameters):
                    summary = work()
                run_log.log_summary(title, summary)
            if self.verbose:
                self._tui.console.print(f"[dim]Log file: {run_log.get_log_path()}[/dim]")

        self._tui.display_summary(f"{title} Summary", summary)
        return summary

    def _create_run_log(self, command: str) -> Optional[RunLogger]:
        if self.log_file_path is None:
            return None
        try:
            return RunLogger(self.log_file_path, command=command)
        except OSError as e:
            # A missing log file never blocks the command
            logger.warning("Could not create log file: %s", e)
            return None

    def _open_store(self) -> CatalogStore:
        return SqliteCatalogStore(self.settings.db_path)

    def _create_walker(self, exclusion: Optional[ExclusionRules] = None) -> TreeWalker:
        # The catalog database must never catalog itself
        return TreeWalker(exclusion=exclusion, skip_paths=self.settings.catalog_files())

    @staticmethod
    def _validate_roots(roots: Sequence) -> List[str]:
        """Return absolute root paths, or raise ConfigError if any is missing."""
        if not roots:
            raise ConfigError("At least one path is required")
        resolved = []
        for root in roots:
            path = os.path.abspath(os.path.expanduser(os.fspath(root)))
            if not os.path.exists(path):
                raise ConfigError(f"Path does not exist: {root}")
            resolved.append(path)
        return resolved
