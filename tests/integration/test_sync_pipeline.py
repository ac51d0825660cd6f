"""
Integration tests for SyncPipeline against a real tree and SQLite catalog.

Tests cover:
- First sync catalogs every file exactly once
- Re-syncing skips cataloged files unless forced
- Tags, batch sizes and worker counts
- Exclusions and per-file failures
- Catalog failures stopping the run
"""

import os
from pathlib import Path
from typing import List, Tuple
from unittest.mock import patch

import pytest

from hashkeep.errors import StoreError
from hashkeep.models import SyncOptions
from hashkeep.operations import SyncPipeline
from hashkeep.scanning import ExclusionRules, TreeWalker, fingerprint_file


@pytest.fixture
def many_files(temp_dir: Path, make_files) -> Path:
    """A tree of 40 small files spread over four folders."""
    root = temp_dir / "many"
    make_files(root, {
        f"dir{i % 4}/file{i:02d}.bin": f"content {i}".encode()
        for i in range(40)
    })
    return root


@pytest.mark.integration
class TestSyncPipelineFirstRun:
    """Tests for syncing into an empty catalog."""

    def test_every_file_is_cataloged(self, store, data_tree: Path):
        summary = SyncPipeline(store, TreeWalker()).run([str(data_tree)])

        assert summary.total_files == 4
        assert summary.files_upserted == 4
        assert summary.files_skipped == 0
        assert summary.files_failed == 0
        assert store.count() == 4

        entry = store.get(str(data_tree / "sub" / "c.txt"))
        assert entry.fingerprint == fingerprint_file(data_tree / "sub" / "c.txt")
        assert entry.size == len("charlie")

    def test_tag_is_stamped(self, store, data_tree: Path):
        SyncPipeline(store, TreeWalker(), SyncOptions(tag="weekly")).run([str(data_tree)])

        assert {entry.tag for entry in store.all()} == {"weekly"}

    @pytest.mark.parametrize("workers,batch_size", [(1, 1), (4, 3), (8, 100)])
    def test_worker_and_batch_combinations(self, store, many_files: Path, workers: int, batch_size: int):
        options = SyncOptions(workers=workers, batch_size=batch_size)

        summary = SyncPipeline(store, TreeWalker(), options).run([str(many_files)])

        assert summary.files_upserted == 40
        assert store.count() == 40
        assert len({entry.path for entry in store.all()}) == 40

    def test_progress_counts_committed_entries(self, store, many_files: Path):
        calls: List[Tuple[int, int, str]] = []
        pipeline = SyncPipeline(
            store,
            TreeWalker(),
            SyncOptions(workers=3, batch_size=7),
            on_progress=lambda done, total, path: calls.append((done, total, path)),
        )

        pipeline.run([str(many_files)])

        assert [done for done, _, _ in calls] == list(range(1, 41))
        assert all(total == 40 for _, total, _ in calls)

    def test_exclusions_are_not_cataloged(self, store, data_tree: Path):
        walker = TreeWalker(ExclusionRules.from_lines(["/_copy\\.txt$/"]))

        summary = SyncPipeline(store, walker).run([str(data_tree)])

        assert summary.files_upserted == 3
        assert store.find(str(data_tree / "sub" / "a_copy.txt")) is None

    def test_catalog_database_is_skipped(self, temp_dir: Path, data_tree: Path):
        """A catalog living inside a synced tree never catalogs itself."""
        from hashkeep.catalog import SqliteCatalogStore

        db_path = data_tree / "hashkeep.db"
        sidecars = [f"{db_path}{suffix}" for suffix in ("", "-wal", "-shm", "-journal")]
        with SqliteCatalogStore(db_path) as inner_store:
            summary = SyncPipeline(inner_store, TreeWalker(skip_paths=sidecars)).run([str(data_tree)])

            assert summary.files_upserted == 4
            assert all(not entry.name.startswith("hashkeep.db") for entry in inner_store.all())


@pytest.mark.integration
class TestSyncPipelineRerun:
    """Tests for syncing a tree that is already cataloged."""

    def test_second_sync_skips_everything(self, store, data_tree: Path):
        SyncPipeline(store, TreeWalker()).run([str(data_tree)])

        with patch("hashkeep.operations.sync_pipeline.build_entry") as mock_build:
            summary = SyncPipeline(store, TreeWalker(), SyncOptions(workers=2)).run([str(data_tree)])

        mock_build.assert_not_called()
        assert summary.files_skipped == 4
        assert summary.files_upserted == 0
        assert store.count() == 4

    def test_new_files_are_added(self, store, data_tree: Path):
        SyncPipeline(store, TreeWalker()).run([str(data_tree)])
        (data_tree / "d.txt").write_text("delta")

        summary = SyncPipeline(store, TreeWalker()).run([str(data_tree)])

        assert summary.files_upserted == 1
        assert summary.files_skipped == 4
        assert store.count() == 5

    def test_force_refingerprints_in_place(self, store, data_tree: Path):
        SyncPipeline(store, TreeWalker()).run([str(data_tree)])
        target = data_tree / "a.txt"
        row_id = store.row_id(store.get(str(target)).key)
        target.write_text("changed content")

        summary = SyncPipeline(store, TreeWalker(), SyncOptions(force=True, tag="forced")).run([str(data_tree)])

        assert summary.files_upserted == 4
        assert store.count() == 4
        entry = store.get(str(target))
        assert entry.fingerprint == fingerprint_file(target)
        assert entry.tag == "forced"
        assert store.row_id(entry.key) == row_id

    def test_overlapping_roots_catalog_once(self, store, data_tree: Path):
        summary = SyncPipeline(store, TreeWalker()).run([str(data_tree), str(data_tree / "sub")])

        assert summary.files_upserted == 4
        assert store.count() == 4


@pytest.mark.integration
class TestSyncPipelineFailures:
    """Tests for per-file and catalog failures."""

    def test_unreadable_file_is_reported(self, store, data_tree: Path):
        original_open = open
        bad_path = str(data_tree / "b.txt")

        def failing_open(path, *args, **kwargs):
            if str(path) == bad_path:
                raise PermissionError(13, "Permission denied", bad_path)
            return original_open(path, *args, **kwargs)

        with patch("builtins.open", side_effect=failing_open):
            summary = SyncPipeline(store, TreeWalker(), SyncOptions(workers=2)).run([str(data_tree)])

        assert summary.files_failed == 1
        assert summary.files_upserted == 3
        assert any(bad_path in error for error in summary.errors)
        assert store.find(bad_path) is None

    def test_store_failure_stops_run(self, store, many_files: Path):
        with patch.object(store, "upsert_many", side_effect=StoreError("disk full")):
            with pytest.raises(StoreError, match="disk full"):
                SyncPipeline(store, TreeWalker(), SyncOptions(workers=4, batch_size=5)).run([str(many_files)])

    def test_walk_errors_are_reported(self, store, temp_dir: Path, data_tree: Path):
        summary = SyncPipeline(store, TreeWalker()).run([str(data_tree), str(temp_dir / "missing")])

        assert summary.files_upserted == 4
        assert summary.errors


@pytest.mark.integration
class TestSyncPipelineUndecodableNames:
    """Tests for file names that are not valid UTF-8."""

    def test_undecodable_name_is_cataloged(self, store, undecodable_tree: Path):
        bad_path = os.path.join(str(undecodable_tree), os.fsdecode(b"bad\xff.txt"))

        summary = SyncPipeline(store, TreeWalker(), SyncOptions(workers=2)).run([str(undecodable_tree)])

        assert summary.files_upserted == 2
        assert summary.files_failed == 0
        entry = store.get(bad_path)
        assert entry.name == os.fsdecode(b"bad\xff.txt")
        assert entry.fingerprint == store.get(str(undecodable_tree / "good.txt")).fingerprint

    def test_resync_skips_undecodable_name(self, store, undecodable_tree: Path):
        SyncPipeline(store, TreeWalker()).run([str(undecodable_tree)])

        summary = SyncPipeline(store, TreeWalker()).run([str(undecodable_tree)])

        assert summary.files_skipped == 2
        assert store.count() == 2
