"""SQLite-backed catalog store."""

import logging
import os
import sqlite3
import threading
from pathlib import Path
from typing import Iterable, List, Sequence

from hashkeep.errors import EntryNotFoundError, StoreError
from hashkeep.models import CatalogEntry, EntryStatus, Fingerprint

from .store import CatalogStore

logger = logging.getLogger(__name__)

_COLUMNS = "key, name, path, status, md5, blake3, size, tag, mtime, ctime"

_UPSERT_SQL = f"""
    INSERT INTO file_infos ({_COLUMNS})
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(key) DO UPDATE SET
        name = excluded.name,
        path = excluded.path,
        status = excluded.status,
        md5 = excluded.md5,
        blake3 = excluded.blake3,
        size = excluded.size,
        tag = excluded.tag,
        mtime = excluded.mtime,
        ctime = excluded.ctime
"""


class SqliteCatalogStore(CatalogStore):
    """SQLite catalog with one connection shared by the whole process.

    Statements are serialized by an internal lock, so sync workers may look
    entries up from their own threads while the collector writes. Names and
    paths are stored as file system bytes so undecodable names round-trip.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(
                str(self.db_path),
                isolation_level=None,
                check_same_thread=False,
                timeout=30.0,
            )
            self.conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"Cannot open catalog {self.db_path}: {e}") from e
        logger.debug("Opened catalog %s", self.db_path)

    def _init_schema(self) -> None:
        """Initialize database schema."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS file_infos (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                key TEXT NOT NULL UNIQUE,
                name BLOB NOT NULL,
                path BLOB NOT NULL,
                status INTEGER NOT NULL DEFAULT 0,
                md5 TEXT,
                blake3 TEXT,
                size INTEGER,
                tag TEXT,
                mtime REAL,
                ctime REAL
            );

            CREATE INDEX IF NOT EXISTS idx_file_infos_name ON file_infos (name);
            CREATE INDEX IF NOT EXISTS idx_file_infos_path ON file_infos (path);
            CREATE INDEX IF NOT EXISTS idx_file_infos_md5 ON file_infos (md5);
            CREATE INDEX IF NOT EXISTS idx_file_infos_blake3 ON file_infos (blake3);
        """)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self.conn.close()

    def get(self, path: str) -> CatalogEntry:
        """Get the entry cataloged under a path."""
        try:
            with self._lock:
                row = self.conn.execute(
                    f"SELECT {_COLUMNS} FROM file_infos WHERE path = ? ORDER BY id LIMIT 1",
                    (os.fsencode(path),),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Catalog lookup failed for {path}: {e}") from e

        if row is None:
            raise EntryNotFoundError(path)
        return self._row_to_entry(row)

    def upsert(self, entry: CatalogEntry) -> None:
        """Insert an entry or overwrite the row with the same key."""
        try:
            with self._lock:
                self.conn.execute(_UPSERT_SQL, self._entry_to_row(entry))
        except sqlite3.Error as e:
            raise StoreError(f"Catalog upsert failed for {entry.path}: {e}") from e

    def upsert_many(self, entries: Iterable[CatalogEntry]) -> None:
        """Upsert multiple entries in a single transaction."""
        rows = [self._entry_to_row(entry) for entry in entries]
        if not rows:
            return

        with self._lock:
            try:
                self.conn.execute("BEGIN")
                try:
                    self.conn.executemany(_UPSERT_SQL, rows)
                    self.conn.execute("COMMIT")
                except Exception:
                    self.conn.execute("ROLLBACK")
                    raise
            except sqlite3.Error as e:
                raise StoreError(f"Catalog batch write of {len(rows)} entries failed: {e}") from e

    def delete(self, key: str) -> None:
        """Delete the row with a key."""
        try:
            with self._lock:
                self.conn.execute("DELETE FROM file_infos WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StoreError(f"Catalog delete failed for key {key}: {e}") from e

    def all(self) -> List[CatalogEntry]:
        """Get all entries ordered by row id."""
        try:
            with self._lock:
                rows = self.conn.execute(
                    f"SELECT {_COLUMNS} FROM file_infos ORDER BY id"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Catalog scan failed: {e}") from e
        return [self._row_to_entry(row) for row in rows]

    def count(self) -> int:
        """Get the number of cataloged entries."""
        try:
            with self._lock:
                return self.conn.execute("SELECT COUNT(*) FROM file_infos").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreError(f"Catalog count failed: {e}") from e

    def row_id(self, key: str) -> int:
        """Get the internal row id of a key (stable across upserts)."""
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT id FROM file_infos WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Catalog row id lookup failed for key {key}: {e}") from e
        if row is None:
            raise EntryNotFoundError(key)
        return row[0]

    @staticmethod
    def _entry_to_row(entry: CatalogEntry) -> tuple:
        return (
            entry.key,
            os.fsencode(entry.name),
            os.fsencode(entry.path),
            int(entry.status),
            entry.fingerprint.md5,
            entry.fingerprint.blake3,
            entry.size,
            entry.tag,
            entry.modified_time,
            entry.changed_time,
        )

    @staticmethod
    def _row_to_entry(row: Sequence) -> CatalogEntry:
        return CatalogEntry(
            key=row[0],
            name=os.fsdecode(row[1]),
            path=os.fsdecode(row[2]),
            status=EntryStatus(row[3]),
            fingerprint=Fingerprint(md5=row[4] or "", blake3=row[5] or ""),
            size=row[6] or 0,
            tag=row[7] or "",
            modified_time=row[8] or 0.0,
            changed_time=row[9] or 0.0,
        )
