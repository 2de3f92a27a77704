"""SQLite-backed contact store for local persistence."""
from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Union

from ..models import ContactRecord, WaitlistEntry, utc_now
from .base import DuplicateEntryError, StorageError, check_changes, check_order_by

LOGGER = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS contacts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    email TEXT NOT NULL DEFAULT '',
    phone TEXT NOT NULL DEFAULT '',
    company TEXT NOT NULL DEFAULT '',
    location TEXT NOT NULL DEFAULT '',
    job_title TEXT NOT NULL DEFAULT '',
    birthday TEXT,
    notes TEXT NOT NULL DEFAULT '',
    relationship TEXT NOT NULL DEFAULT '',
    group_name TEXT NOT NULL DEFAULT 'All',
    interests TEXT NOT NULL DEFAULT '[]',
    meeting_context TEXT NOT NULL DEFAULT '',
    source TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_contacts_user ON contacts(user_id);
CREATE TABLE IF NOT EXISTS waitlist (
    email TEXT PRIMARY KEY COLLATE NOCASE,
    created_at TEXT NOT NULL
);
"""

_COLUMNS = (
    "name",
    "email",
    "phone",
    "company",
    "location",
    "job_title",
    "birthday",
    "notes",
    "relationship",
    "group_name",
    "interests",
    "meeting_context",
    "source",
    "created_at",
)


class SqliteContactStore:
    """Contact store persisting to a single SQLite database file."""

    def __init__(self, database_path: Union[str, Path] = "herd.sqlite3", *, timeout: float = 5.0) -> None:
        self._database_path = str(database_path)
        self._timeout = timeout
        with self._connection() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(sqlite3.connect(self._database_path, timeout=self._timeout)) as conn:
                conn.row_factory = sqlite3.Row
                with conn:
                    yield conn
        except sqlite3.IntegrityError as exc:
            raise StorageError(str(exc)) from exc
        except sqlite3.Error as exc:
            LOGGER.exception("SQLite operation failed on %s", self._database_path)
            raise StorageError(str(exc)) from exc

    def select(
        self,
        owner_id: str,
        *,
        name_contains: Optional[str] = None,
        group_name: Optional[str] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> List[ContactRecord]:
        check_order_by(order_by)
        query = "SELECT * FROM contacts WHERE user_id = ?"
        params: List[Any] = [owner_id]
        if name_contains:
            query += " AND LOWER(name) LIKE ? ESCAPE '\\'"
            params.append(f"%{_escape_like(name_contains.lower())}%")
        if group_name:
            query += " AND group_name = ?"
            params.append(group_name)
        query += f" ORDER BY {order_by or 'id'}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(int(limit))

        with self._connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_record(row) for row in rows]

    def insert(self, records: Sequence[ContactRecord]) -> List[ContactRecord]:
        for record in records:
            if not record.owner_id:
                raise StorageError("Contact records require an owner id")
            if not record.name or not record.name.strip():
                raise StorageError("Contact records require a name")

        stored: List[ContactRecord] = []
        placeholders = ", ".join("?" for _ in range(len(_COLUMNS) + 1))
        statement = f"INSERT INTO contacts (user_id, {', '.join(_COLUMNS)}) VALUES ({placeholders})"
        with self._connection() as conn:
            for record in records:
                values = _record_values(record)
                cursor = conn.execute(statement, [record.owner_id, *values])
                stored.append(_row_to_record(conn.execute("SELECT * FROM contacts WHERE id = ?", (cursor.lastrowid,)).fetchone()))
        return stored

    def update(self, contact_id: int, owner_id: str, changes: Mapping[str, Any]) -> Optional[ContactRecord]:
        changes = check_changes(changes)
        if not changes:
            return self._fetch_one(contact_id, owner_id)
        if "interests" in changes:
            changes["interests"] = json.dumps(list(changes["interests"] or []))
        assignments = ", ".join(f"{column} = ?" for column in changes)
        with self._connection() as conn:
            cursor = conn.execute(
                f"UPDATE contacts SET {assignments} WHERE id = ? AND user_id = ?",
                [*changes.values(), contact_id, owner_id],
            )
            if cursor.rowcount == 0:
                return None
        return self._fetch_one(contact_id, owner_id)

    def delete(self, contact_id: int, owner_id: str) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM contacts WHERE id = ? AND user_id = ?", (contact_id, owner_id))
            return cursor.rowcount

    def delete_all(self, owner_id: str) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM contacts WHERE user_id = ?", (owner_id,))
            return cursor.rowcount

    def add_waitlist_entry(self, email: str) -> WaitlistEntry:
        entry = WaitlistEntry(email=email.strip())
        try:
            with self._connection() as conn:
                conn.execute("INSERT INTO waitlist (email, created_at) VALUES (?, ?)", (entry.email, entry.created_at))
        except StorageError as exc:
            if isinstance(exc.__cause__, sqlite3.IntegrityError):
                raise DuplicateEntryError(f"Email '{entry.email}' is already on the waitlist") from exc
            raise
        return entry

    def _fetch_one(self, contact_id: int, owner_id: str) -> Optional[ContactRecord]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM contacts WHERE id = ? AND user_id = ?", (contact_id, owner_id)).fetchone()
        return _row_to_record(row) if row is not None else None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _record_values(record: ContactRecord) -> List[Any]:
    row = record.as_row()
    row["interests"] = json.dumps(list(record.interests))
    row["created_at"] = record.created_at or utc_now()
    return [row[column] for column in _COLUMNS]


def _row_to_record(row: sqlite3.Row) -> ContactRecord:
    data = dict(row)
    data["owner_id"] = data.pop("user_id")
    data["interests"] = json.loads(data.get("interests") or "[]")
    return ContactRecord.from_row(data)


__all__ = ["SqliteContactStore"]
