"""
Concurrent catalog synchronization.

This module contains the SyncPipeline class, which brings the catalog up to
date for a set of directory trees. Work is split three ways:

- a walker thread feeds candidate paths into a bounded queue,
- worker threads fingerprint files in parallel,
- the calling thread collects results, writes them in batches and reports
  progress. It is the only writer and the only owner of counters.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from hashkeep.catalog import CatalogStore
from hashkeep.errors import EntryNotFoundError
from hashkeep.models import CatalogEntry, SyncOptions, SyncSummary
from hashkeep.scanning import TreeWalker, build_entry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

# How long blocked threads wait before re-checking the stop event
_POLL_INTERVAL = 0.1

_END_OF_PATHS = object()
_WORKER_DONE = object()


@dataclass
class _Fingerprinted:
    entry: CatalogEntry


@dataclass
class _Skipped:
    path: str


@dataclass
class _Failed:
    path: str
    reason: str
    fatal: Optional[BaseException] = None


_Message = Union[_Fingerprinted, _Skipped, _Failed, object]


class SyncPipeline:
    """
    Walks, fingerprints and catalogs files with bounded parallelism.

    Unless ``options.force`` is set, paths already present in the catalog are
    skipped without being read. Every other file is fingerprinted once and
    upserted exactly once, in batches of ``options.batch_size`` written as one
    transaction each. Per-file failures are reported and do not stop the run;
    a catalog failure stops every thread and is re-raised.
    """

    def __init__(
        self,
        store: CatalogStore,
        walker: TreeWalker,
        options: Optional[SyncOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Create a SyncPipeline.

        Parameters:
            store (CatalogStore): Catalog to read for skip checks and to write.
            walker (TreeWalker): Source of candidate paths, with exclusions applied.
            options (SyncOptions): Worker count, tag, force flag and batch size.
            on_progress (callable): Called as ``(done, total, path)`` after each
                entry is committed.
        """
        self._store = store
        self._walker = walker
        self._options = options or SyncOptions()
        self._on_progress = on_progress

    def run(self, roots: Iterable[str]) -> SyncSummary:
        """
        Synchronize the catalog with every file under ``roots``.

        Returns:
            SyncSummary: Counts of files found, written, skipped and failed.

        Raises:
            StoreError: If the catalog fails; all threads are stopped first.
        """
        started = time.monotonic()
        roots = list(roots)
        summary = SyncSummary()

        # Counting walk; any failure here happens before the first write
        summary.total_files = self._walker.count(roots)
        self._walker.clear_errors()
        logger.info("Found %d files to consider under %d root(s)", summary.total_files, len(roots))

        worker_count = self._options.workers
        path_queue: "queue.Queue[object]" = queue.Queue(maxsize=worker_count * 2)
        result_queue: "queue.Queue[_Message]" = queue.Queue()
        stop = threading.Event()

        producer = threading.Thread(
            target=self._produce,
            args=(roots, path_queue, result_queue, stop),
            name="sync-walker",
            daemon=True,
        )
        workers = [
            threading.Thread(
                target=self._work,
                args=(path_queue, result_queue, stop),
                name=f"sync-worker-{idx + 1}",
                daemon=True,
            )
            for idx in range(worker_count)
        ]

        producer.start()
        for thread in workers:
            thread.start()

        try:
            self._collect(result_queue, worker_count, summary)
        finally:
            stop.set()
            producer.join()
            for thread in workers:
                thread.join()

        walk_errors = self._walker.get_errors()
        summary.errors.extend(walk_errors)
        summary.duration_seconds = time.monotonic() - started
        logger.info(
            "Sync finished: %d written, %d skipped, %d failed",
            summary.files_upserted,
            summary.files_skipped,
            summary.files_failed,
        )
        return summary

    def _produce(
        self,
        roots: List[str],
        path_queue: "queue.Queue[object]",
        result_queue: "queue.Queue[_Message]",
        stop: threading.Event,
    ) -> None:
        """Feed walked paths to the workers, then one end marker per worker."""
        try:
            for path in self._walker.walk(roots):
                if not self._put(path_queue, path, stop):
                    return
        except Exception as e:
            logger.exception("Directory walk failed")
            result_queue.put(_Failed("<walk>", str(e), fatal=e))
        finally:
            for _ in range(self._options.workers):
                if not self._put(path_queue, _END_OF_PATHS, stop):
                    break

    @staticmethod
    def _put(path_queue: "queue.Queue[object]", item: object, stop: threading.Event) -> bool:
        """Block until ``item`` is queued; give up if the run is stopping."""
        while not stop.is_set():
            try:
                path_queue.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _work(
        self,
        path_queue: "queue.Queue[object]",
        result_queue: "queue.Queue[_Message]",
        stop: threading.Event,
    ) -> None:
        """Claim paths until the end marker arrives or the run stops."""
        try:
            while not stop.is_set():
                try:
                    item = path_queue.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    continue
                if item is _END_OF_PATHS:
                    break

                path = str(item)
                try:
                    result_queue.put(self._process(path))
                except Exception as e:
                    result_queue.put(_Failed(path, str(e), fatal=e))
                    break
        finally:
            result_queue.put(_WORKER_DONE)

    def _process(self, path: str) -> _Message:
        """Fingerprint one path, or report it as skipped or failed."""
        if not self._options.force:
            try:
                self._store.get(path)
                return _Skipped(path)
            except EntryNotFoundError:
                pass

        try:
            entry = build_entry(path, tag=self._options.tag)
        except OSError as e:
            return _Failed(path, e.strerror or str(e))

        return _Fingerprinted(entry)

    def _collect(
        self,
        result_queue: "queue.Queue[_Message]",
        worker_count: int,
        summary: SyncSummary,
    ) -> None:
        """Batch and write worker results until every worker has finished."""
        batch: List[CatalogEntry] = []
        finished_workers = 0

        while finished_workers < worker_count:
            message = result_queue.get()

            if message is _WORKER_DONE:
                finished_workers += 1
            elif isinstance(message, _Fingerprinted):
                batch.append(message.entry)
                if len(batch) >= self._options.batch_size:
                    self._commit(batch, summary)
                    batch = []
            elif isinstance(message, _Skipped):
                summary.files_skipped += 1
                logger.debug("Skipping already cataloged file: %s", message.path)
            elif isinstance(message, _Failed):
                if message.fatal is not None:
                    logger.error("Sync stopped at %s: %s", message.path, message.reason)
                    raise message.fatal
                summary.files_failed += 1
                summary.errors.append(f"{message.path}: {message.reason}")
                logger.warning("Could not process %s: %s", message.path, message.reason)

        self._commit(batch, summary)

    def _commit(self, batch: List[CatalogEntry], summary: SyncSummary) -> None:
        """Write one batch, then report progress for each committed entry."""
        if not batch:
            return

        self._store.upsert_many(batch)

        for entry in batch:
            summary.files_upserted += 1
            logger.debug("Cataloged %s", entry.path)
            if self._on_progress is not None:
                self._on_progress(summary.files_upserted, summary.total_files, entry.path)
