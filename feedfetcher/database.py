"""SQLite storage for feeds, fetches and the entries they produce."""

from __future__ import annotations

import enum
import sqlite3
from dataclasses import dataclass, replace
from datetime import date, time
from typing import Iterable, Optional

_SCHEMA = """
CREATE TABLE IF NOT EXISTS feeds (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    url TEXT NOT NULL,
    strategy TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS fetches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    feed_id INTEGER NOT NULL REFERENCES feeds(id),
    url TEXT NOT NULL,
    strategy TEXT NOT NULL,
    status TEXT NOT NULL,
    content TEXT,
    error TEXT,
    log TEXT NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    feed_id INTEGER NOT NULL REFERENCES feeds(id),
    feed_entry_id TEXT NOT NULL,
    name TEXT NOT NULL,
    view_url TEXT NOT NULL,
    embed_url TEXT,
    produced_date TEXT NOT NULL,
    produced_time TEXT,
    viewed INTEGER NOT NULL DEFAULT 0,
    UNIQUE (feed_id, feed_entry_id)
);
CREATE TABLE IF NOT EXISTS fetch_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    fetch_id INTEGER NOT NULL REFERENCES fetches(id),
    entry_id INTEGER NOT NULL REFERENCES entries(id)
);
"""


class FetchStatus(enum.Enum):
    """Outcome of a single fetch."""

    SUCCESS = "Success"
    FETCH_ERROR = "FetchError"
    PARSE_ERROR = "ParseError"
    ENTRY_UPDATE_ERROR = "EntryUpdateError"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Feed:
    """A source of entries, fetched with the strategy it names."""

    id: int
    name: str
    url: str
    strategy: str


@dataclass
class Fetch:
    """One attempt at fetching a feed. ``id`` is ``None`` until saved."""

    feed_id: int
    url: str
    strategy: str
    status: FetchStatus
    content: Optional[str] = None
    error: Optional[str] = None
    log: str = ""
    id: Optional[int] = None


@dataclass(frozen=True)
class Entry:
    """A stored entry of a feed."""

    id: int
    feed_id: int
    feed_entry_id: str
    name: str
    view_url: str
    embed_url: Optional[str]
    produced_date: date
    produced_time: Optional[time]
    viewed: bool


def _fetch_from_row(row: sqlite3.Row) -> Fetch:
    return Fetch(
        feed_id=row["feed_id"],
        url=row["url"],
        strategy=row["strategy"],
        status=FetchStatus(row["status"]),
        content=row["content"],
        error=row["error"],
        log=row["log"],
        id=row["id"],
    )


def _entry_from_row(row: sqlite3.Row) -> Entry:
    produced_time = row["produced_time"]
    return Entry(
        id=row["id"],
        feed_id=row["feed_id"],
        feed_entry_id=row["feed_entry_id"],
        name=row["name"],
        view_url=row["view_url"],
        embed_url=row["embed_url"],
        produced_date=date.fromisoformat(row["produced_date"]),
        produced_time=None if produced_time is None else time.fromisoformat(produced_time),
        viewed=bool(row["viewed"]),
    )


def _feed_from_row(row: sqlite3.Row) -> Feed:
    return Feed(id=row["id"], name=row["name"], url=row["url"], strategy=row["strategy"])


class Database:
    """A connection to the feed database, creating its tables when missing."""

    def __init__(self, path: str = ":memory:") -> None:
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(_SCHEMA)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    # feeds

    def add_feed(self, name: str, url: str, strategy: str) -> Feed:
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO feeds (name, url, strategy) VALUES (?, ?, ?)",
                (name, url, strategy),
            )
        return Feed(id=cursor.lastrowid, name=name, url=url, strategy=strategy)

    def get_feed(self, feed_id: int) -> Optional[Feed]:
        row = self._conn.execute("SELECT * FROM feeds WHERE id = ?", (feed_id,)).fetchone()
        return None if row is None else _feed_from_row(row)

    def all_feeds(self) -> list[Feed]:
        rows = self._conn.execute("SELECT * FROM feeds ORDER BY id").fetchall()
        return [_feed_from_row(row) for row in rows]

    def latest_entry(self, feed_id: int) -> Optional[Entry]:
        """The feed's entry with the most recent production date, if any."""
        row = self._conn.execute(
            "SELECT * FROM entries WHERE feed_id = ? "
            "ORDER BY produced_date DESC, id DESC LIMIT 1",
            (feed_id,),
        ).fetchone()
        return None if row is None else _entry_from_row(row)

    # fetches

    def save_fetch(self, fetch: Fetch) -> Fetch:
        """Insert or update a fetch and return the stored copy."""
        values = (
            fetch.feed_id,
            fetch.url,
            fetch.strategy,
            fetch.status.value,
            fetch.content,
            fetch.error,
            fetch.log,
        )
        with self._conn:
            if fetch.id is None:
                cursor = self._conn.execute(
                    "INSERT INTO fetches (feed_id, url, strategy, status, content, error, log) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    values,
                )
                return replace(fetch, id=cursor.lastrowid)
            cursor = self._conn.execute(
                "UPDATE fetches SET feed_id = ?, url = ?, strategy = ?, status = ?, "
                "content = ?, error = ?, log = ? WHERE id = ?",
                (*values, fetch.id),
            )
        if cursor.rowcount == 0:
            raise LookupError(f"No fetch with id {fetch.id}")
        return replace(fetch)

    def get_fetch(self, fetch_id: int) -> Optional[Fetch]:
        row = self._conn.execute("SELECT * FROM fetches WHERE id = ?", (fetch_id,)).fetchone()
        return None if row is None else _fetch_from_row(row)

    def fetches_for_feed(self, feed_id: int) -> list[Fetch]:
        rows = self._conn.execute(
            "SELECT * FROM fetches WHERE feed_id = ? ORDER BY id", (feed_id,)
        ).fetchall()
        return [_fetch_from_row(row) for row in rows]

    # entries

    def save_entries(self, feed_id: int, fetch_id: int, entries: Iterable) -> list[Entry]:
        """Create or update entries of a feed and link each to the fetch, atomically."""
        saved_ids: list[int] = []
        with self._conn:
            for info in entries:
                produced_time = info.produced_time
                values = (
                    info.title,
                    info.view_url,
                    info.embed_url,
                    info.produced_date.isoformat(),
                    None if produced_time is None else produced_time.isoformat(),
                )
                existing = self._conn.execute(
                    "SELECT id FROM entries WHERE feed_id = ? AND feed_entry_id = ?",
                    (feed_id, info.feed_entry_id),
                ).fetchone()
                if existing is None:
                    cursor = self._conn.execute(
                        "INSERT INTO entries (name, view_url, embed_url, produced_date, "
                        "produced_time, feed_id, feed_entry_id) VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (*values, feed_id, info.feed_entry_id),
                    )
                    entry_id = cursor.lastrowid
                else:
                    entry_id = existing["id"]
                    self._conn.execute(
                        "UPDATE entries SET name = ?, view_url = ?, embed_url = ?, "
                        "produced_date = ?, produced_time = ? WHERE id = ?",
                        (*values, entry_id),
                    )
                self._conn.execute(
                    "INSERT INTO fetch_entries (fetch_id, entry_id) VALUES (?, ?)",
                    (fetch_id, entry_id),
                )
                saved_ids.append(entry_id)
        return [self._get_entry(entry_id) for entry_id in saved_ids]

    def _get_entry(self, entry_id: int) -> Entry:
        row = self._conn.execute("SELECT * FROM entries WHERE id = ?", (entry_id,)).fetchone()
        return _entry_from_row(row)

    def entries_for_fetch(self, fetch_id: int) -> list[Entry]:
        """Entries a fetch produced, oldest first."""
        rows = self._conn.execute(
            "SELECT entries.* FROM entries "
            "JOIN fetch_entries ON fetch_entries.entry_id = entries.id "
            "WHERE fetch_entries.fetch_id = ? "
            "ORDER BY entries.produced_date, entries.produced_time, entries.id",
            (fetch_id,),
        ).fetchall()
        return [_entry_from_row(row) for row in rows]

    def fetches_for_entry(self, entry_id: int) -> list[Fetch]:
        rows = self._conn.execute(
            "SELECT fetches.* FROM fetches "
            "JOIN fetch_entries ON fetch_entries.fetch_id = fetches.id "
            "WHERE fetch_entries.entry_id = ? ORDER BY fetches.id",
            (entry_id,),
        ).fetchall()
        return [_fetch_from_row(row) for row in rows]