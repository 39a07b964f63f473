from __future__ import annotations

import contextlib
import os
import sqlite3
import threading
from collections.abc import Callable

from nexjob._shared.logging_bridge import error as log_error
from nexjob._shared.utils import now_iso

from .events import BookmarkBus, BookmarkEvent


class BookmarkStoreError(RuntimeError):
    """Raised when the bookmark database cannot be read or written."""


class BookmarkStore:
    """
    Saved jobs, persisted in SQLite and announced on a BookmarkBus.

    Every state change made through this store publishes exactly one
    BookmarkEvent. Changes made by another store on the same file become
    visible (and are published) on `refresh()`.
    """

    def __init__(self, sqlite_path: str, bus: BookmarkBus | None = None) -> None:
        self.sqlite_path = sqlite_path
        self.bus = bus or BookmarkBus()
        self._lock = threading.Lock()
        init_db(sqlite_path)
        self._known: set[str] = set(self._read_ids())

    # ---- Public API ---------------------------------------------------------

    def is_bookmarked(self, job_id: str) -> bool:
        job_id = _norm(job_id)
        with _connect(self.sqlite_path) as conn:
            _apply_pragmas(conn)
            row = conn.execute("SELECT 1 FROM bookmarks WHERE job_id = ?", (job_id,)).fetchone()
        return row is not None

    def add(self, job_id: str) -> bool:
        """Bookmark `job_id`. Returns True if it was not bookmarked before."""
        job_id = _norm(job_id)
        changed = self._write("add", job_id, lambda cur: _insert(cur, job_id))
        if changed:
            self._announce(job_id, True)
        return changed

    def remove(self, job_id: str) -> bool:
        """Drop the bookmark. Returns True if one existed."""
        job_id = _norm(job_id)
        changed = self._write("remove", job_id, lambda cur: _delete(cur, job_id))
        if changed:
            self._announce(job_id, False)
        return changed

    def toggle(self, job_id: str) -> bool:
        """Flip the bookmark; returns the new state."""
        job_id = _norm(job_id)

        def _flip(cur: sqlite3.Cursor) -> bool:
            # read and write in one IMMEDIATE transaction so two stores can't both add
            if cur.execute("SELECT 1 FROM bookmarks WHERE job_id = ?", (job_id,)).fetchone():
                _delete(cur, job_id)
                return False
            return _insert(cur, job_id)

        state = self._write("toggle", job_id, _flip)
        self._announce(job_id, state)
        return state

    def list_ids(self) -> list[str]:
        """Bookmarked job ids, most recent first."""
        return self._read_ids()

    def count(self) -> int:
        with _connect(self.sqlite_path) as conn:
            _apply_pragmas(conn)
            (n,) = conn.execute("SELECT COUNT(*) FROM bookmarks").fetchone()
        return int(n or 0)

    def refresh(self) -> list[BookmarkEvent]:
        """
        Re-read the table and publish one event per job whose state changed
        since this store last looked (writes by other processes/stores).
        """
        current = set(self._read_ids())
        with self._lock:
            added = sorted(current - self._known)
            removed = sorted(self._known - current)
            self._known = current

        events = [BookmarkEvent(job_id, True) for job_id in added]
        events += [BookmarkEvent(job_id, False) for job_id in removed]
        for event in events:
            self.bus.publish(event)
        return events

    # ---- Internal -----------------------------------------------------------

    def _announce(self, job_id: str, state: bool) -> None:
        with self._lock:
            if state:
                self._known.add(job_id)
            else:
                self._known.discard(job_id)
        self.bus.publish(BookmarkEvent(job_id=job_id, new_state=state))

    def _write(self, op: str, job_id: str, body: Callable[[sqlite3.Cursor], bool]) -> bool:
        try:
            with _connect(self.sqlite_path) as conn:
                _apply_pragmas(conn)
                cur = conn.cursor()
                cur.execute("BEGIN IMMEDIATE")
                result = body(cur)
                conn.commit()
        except sqlite3.Error as e:
            log_error({
                "component": "bookmarks.store",
                "op": op,
                "job_id": job_id,
                "sqlite_path": self.sqlite_path,
                "error": repr(e),
            })
            raise BookmarkStoreError(f"{op} {job_id!r} failed: {e}") from e
        return result

    def _read_ids(self) -> list[str]:
        try:
            with _connect(self.sqlite_path) as conn:
                _apply_pragmas(conn)
                rows = conn.execute("SELECT job_id FROM bookmarks ORDER BY created_utc DESC, rowid DESC").fetchall()
        except sqlite3.Error as e:
            raise BookmarkStoreError(f"reading {self.sqlite_path!r} failed: {e}") from e
        return [r[0] for r in rows]


# ---- Module helpers ---------------------------------------------------------


def init_db(sqlite_path: str) -> None:
    """
    Ensure the SQLite database and schema exist.
    Safe to call multiple times.
    """
    _ensure_dir(sqlite_path)
    try:
        with _connect(sqlite_path) as conn:
            _apply_pragmas(conn)
            _ensure_schema(conn)
    except sqlite3.Error as e:
        raise BookmarkStoreError(f"cannot open bookmark database {sqlite_path!r}: {e}") from e


def reset_db(sqlite_path: str) -> None:
    """Remove the DB file (and WAL side files). Safe if missing."""
    for suffix in ("", "-wal", "-shm"):
        with contextlib.suppress(FileNotFoundError):
            os.remove(sqlite_path + suffix)


def _insert(cur: sqlite3.Cursor, job_id: str) -> bool:
    cur.execute("INSERT OR IGNORE INTO bookmarks (job_id, created_utc) VALUES (?, ?)", (job_id, now_iso()))
    return cur.rowcount == 1


def _delete(cur: sqlite3.Cursor, job_id: str) -> bool:
    cur.execute("DELETE FROM bookmarks WHERE job_id = ?", (job_id,))
    return cur.rowcount == 1


def _norm(job_id: str) -> str:
    value = str(job_id).strip()
    if not value:
        raise ValueError("job_id cannot be empty")
    return value


def _ensure_dir(sqlite_path: str) -> None:
    d = os.path.dirname(os.path.abspath(sqlite_path)) or "."
    os.makedirs(d, exist_ok=True)


@contextlib.contextmanager
def _connect(sqlite_path: str):
    # isolation_level=None gives autocommit mode; writes manage transactions explicitly.
    conn = sqlite3.connect(sqlite_path, timeout=30.0, isolation_level=None)
    try:
        yield conn
    finally:
        conn.close()


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA temp_store=MEMORY;")


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS bookmarks (
          job_id TEXT PRIMARY KEY,
          created_utc TEXT NOT NULL
        );
        """
    )
