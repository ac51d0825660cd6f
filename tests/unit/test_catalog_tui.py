"""Tests for the CatalogTUI class."""

import io
import os

import pytest

from hashkeep.models import (
    CatalogEntry,
    DirtyKind,
    DirtySummary,
    DuplicateGroup,
    DuplicateSummary,
    Fingerprint,
    SyncSummary,
)
from hashkeep.ui import CatalogTUI
from hashkeep.ui.catalog_tui import printable

FINGERPRINT = Fingerprint(md5="0" * 32, blake3="abcdef012345" + "0" * 52)


def make_entry(path: str, size: int = 2048) -> CatalogEntry:
    return CatalogEntry(
        key=f"key:{path}",
        name=path.rsplit("/", 1)[-1],
        path=path,
        fingerprint=FINGERPRINT,
        size=size,
        modified_time=0.0,
        changed_time=0.0,
    )


@pytest.mark.unit
class TestCatalogTUIDisplay:
    """Tests for display methods with captured console output."""

    def test_display_header_lists_parameters(self, tui_with_output):
        tui, output = tui_with_output

        tui.display_header("Sync", {"Roots": "/data", "Workers": "4"})

        result = output.getvalue()
        assert "Sync" in result
        assert "Roots: /data" in result
        assert "Workers: 4" in result

    def test_display_summary_shows_rows_and_duration(self, tui_with_output):
        tui, output = tui_with_output
        summary = SyncSummary(total_files=1500, files_upserted=1500, duration_seconds=323)

        tui.display_summary("Sync Summary", summary)

        result = output.getvalue()
        assert "Sync Summary" in result
        assert "Files found" in result
        assert "1,500" in result
        assert "5m 23s" in result

    def test_display_summary_marks_list_only(self, tui_with_output):
        tui, output = tui_with_output

        tui.display_summary("Dirty Cleanup", DirtySummary(files_found=2, list_only=True))

        assert "[LIST ONLY]" in output.getvalue()

    def test_display_summary_shows_deleted_dir(self, tui_with_output):
        tui, output = tui_with_output
        summary = DuplicateSummary(files_moved=1)
        summary.deleted_dir = "/ws/deleted"

        tui.display_summary("Duplicates", summary)

        assert "Moved to: /ws/deleted" in output.getvalue()

    def test_display_summary_with_errors(self, tui_with_output):
        tui, output = tui_with_output
        summary = SyncSummary(errors=["Permission denied: /data/secret"])

        tui.display_summary("Sync Summary", summary)

        result = output.getvalue()
        assert "Errors (1)" in result
        assert "Permission denied: /data/secret" in result

    def test_many_errors_truncated(self, tui_with_output):
        tui, output = tui_with_output
        summary = SyncSummary(errors=[f"Error {i}" for i in range(15)])

        tui.display_summary("Sync Summary", summary)

        result = output.getvalue()
        assert "Error 9" in result
        assert "Error 10" not in result
        assert "and 5 more errors" in result

    def test_display_duplicate_group(self, tui_with_output):
        tui, output = tui_with_output
        group = DuplicateGroup(
            fingerprint=FINGERPRINT,
            members=[make_entry("/data/b.txt"), make_entry("/data/a.txt")],
        )

        tui.display_duplicate_group(group, 1, 3)

        result = output.getvalue()
        assert "Duplicate Group 1/3" in result
        assert "2 copies" in result
        assert "abcdef012345" in result
        assert result.index("/data/a.txt") < result.index("/data/b.txt")
        assert "2.0 KB" in result

    def test_display_dirty_listing(self, tui_with_output):
        tui, output = tui_with_output

        tui.display_dirty_listing({
            DirtyKind.MAC_METADATA: ["/data/.DS_Store"],
            DirtyKind.EMPTY_FOLDER: ["/data/empty"],
        })

        result = output.getvalue()
        assert "Dirty Files (2)" in result
        assert "macOS .DS_Store files" in result
        assert "/data/empty" in result

    def test_display_dirty_listing_empty(self, tui_with_output):
        tui, output = tui_with_output

        tui.display_dirty_listing({DirtyKind.EMPTY_FILE: []})

        assert "No dirty files found" in output.getvalue()

    def test_display_fingerprint(self, tui_with_output):
        tui, output = tui_with_output

        tui.display_fingerprint(make_entry("/data/a.txt"))

        result = output.getvalue()
        assert "md5:    " + "0" * 32 in result
        assert "blake3: " + FINGERPRINT.blake3 in result


@pytest.mark.unit
class TestCatalogTUIFormatters:
    """Tests for formatting helpers."""

    @pytest.fixture
    def tui(self) -> CatalogTUI:
        return CatalogTUI(console=None)

    def test_format_size(self, tui: CatalogTUI):
        assert tui._format_size(512) == "512 B"
        assert tui._format_size(1536) == "1.5 KB"
        assert tui._format_size(10 * 1024 * 1024) == "10.0 MB"
        assert tui._format_size(3 * 1024 ** 3) == "3.0 GB"

    def test_format_duration(self, tui: CatalogTUI):
        assert tui._format_duration(0) == "0m 0s"
        assert tui._format_duration(125) == "2m 5s"
        assert tui._format_duration(-5) == "0m 0s"

    def test_truncate_name_keeps_tail(self, tui: CatalogTUI):
        long_path = "/very/long/path/" + "x" * 100 + "/file.txt"

        result = tui._truncate_name(long_path, max_length=30)

        assert len(result) == 30
        assert result.startswith("...")
        assert result.endswith("file.txt")

    def test_truncate_name_short(self, tui: CatalogTUI):
        assert tui._truncate_name("short.txt") == "short.txt"


@pytest.mark.unit
class TestCatalogTUIProgress:
    """Tests for the progress callback."""

    def test_callback_updates_task(self, tui_with_output):
        tui, _ = tui_with_output

        progress, callback = tui.create_progress_callback("Syncing", total=None)
        with progress:
            callback(3, 10, "/data/a.txt")

        task = progress.tasks[0]
        assert task.completed == 3
        assert task.total == 10

    def test_callback_shows_current_path(self, tui_with_output):
        tui, _ = tui_with_output

        progress, callback = tui.create_progress_callback("Syncing", total=10)
        with progress:
            callback(1, 10, "/data/[draft] a.txt")

        task = progress.tasks[0]
        assert progress.columns[-1].render(task).plain == "/data/[draft] a.txt"

    def test_current_path_is_empty_before_first_callback(self, tui_with_output):
        tui, _ = tui_with_output

        progress, _ = tui.create_progress_callback("Syncing", total=10)

        assert progress.columns[-1].render(progress.tasks[0]).plain == ""

    def test_long_current_path_keeps_file_name(self, tui_with_output):
        tui, _ = tui_with_output
        path = "/data/" + "deep/" * 30 + "photo.jpg"

        progress, callback = tui.create_progress_callback("Syncing", total=1)
        callback(1, 1, path)

        shown = progress.columns[-1].render(progress.tasks[0]).plain
        assert shown.startswith("...")
        assert shown.endswith("photo.jpg")


@pytest.mark.unit
class TestPrintable:
    """Tests for display-safe path rendering."""

    def test_markup_is_escaped(self):
        assert printable("/data/[bold]x.txt") == "/data/\\[bold]x.txt"

    def test_undecodable_bytes_are_replaced(self):
        shown = printable(os.fsdecode(b"/data/bad\xff.txt"))

        assert shown.startswith("/data/bad")
        assert shown.endswith(".txt")
        assert "�" in shown
        shown.encode("utf-8")

    def test_undecodable_name_in_duplicate_group(self, tui_with_output):
        tui, output = tui_with_output
        bad = os.fsdecode(b"/data/bad\xff.txt")
        group = DuplicateGroup(fingerprint=FINGERPRINT, members=[make_entry("/data/a.txt"), make_entry(bad)])

        tui.display_duplicate_group(group, 1, 1)

        assert "/data/bad�" in output.getvalue()
