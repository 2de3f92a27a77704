"""In-memory contact store used for tests and dry runs."""
from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models import ContactRecord, WaitlistEntry, utc_now
from .base import DuplicateEntryError, StorageError, check_changes, check_order_by


class InMemoryContactStore:
    """Dictionary-backed store that copies records in and out."""

    def __init__(self, records: Optional[Sequence[ContactRecord]] = None) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._contacts: Dict[int, ContactRecord] = {}
        self._waitlist: Dict[str, WaitlistEntry] = {}
        if records:
            self.insert(records)

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
        with self._lock:
            matches = [record for record in self._contacts.values() if record.owner_id == owner_id]
        if name_contains:
            needle = name_contains.lower()
            matches = [record for record in matches if needle in record.name.lower()]
        if group_name:
            matches = [record for record in matches if record.group_name == group_name]
        if order_by:
            matches.sort(key=lambda record: (getattr(record, order_by) is None, getattr(record, order_by) or ""))
        if limit is not None:
            matches = matches[:limit]
        return [_copy(record) for record in matches]

    def insert(self, records: Sequence[ContactRecord]) -> List[ContactRecord]:
        stored: List[ContactRecord] = []
        for record in records:
            if not record.owner_id:
                raise StorageError("Contact records require an owner id")
            if not record.name or not record.name.strip():
                raise StorageError("Contact records require a name")
        with self._lock:
            for record in records:
                saved = replace(record, id=next(self._ids), interests=list(record.interests))
                if saved.created_at is None:
                    saved.created_at = utc_now()
                self._contacts[saved.id] = saved
                stored.append(_copy(saved))
        return stored

    def update(self, contact_id: int, owner_id: str, changes: Mapping[str, Any]) -> Optional[ContactRecord]:
        changes = check_changes(changes)
        with self._lock:
            current = self._contacts.get(contact_id)
            if current is None or current.owner_id != owner_id:
                return None
            updated = replace(current, **changes)
            self._contacts[contact_id] = updated
            return _copy(updated)

    def delete(self, contact_id: int, owner_id: str) -> int:
        with self._lock:
            current = self._contacts.get(contact_id)
            if current is None or current.owner_id != owner_id:
                return 0
            del self._contacts[contact_id]
            return 1

    def delete_all(self, owner_id: str) -> int:
        with self._lock:
            doomed = [key for key, record in self._contacts.items() if record.owner_id == owner_id]
            for key in doomed:
                del self._contacts[key]
            return len(doomed)

    def add_waitlist_entry(self, email: str) -> WaitlistEntry:
        key = email.strip().lower()
        with self._lock:
            if key in self._waitlist:
                raise DuplicateEntryError(f"Email '{email}' is already on the waitlist")
            entry = WaitlistEntry(email=email.strip())
            self._waitlist[key] = entry
            return entry


def _copy(record: ContactRecord) -> ContactRecord:
    return replace(record, interests=list(record.interests))


__all__ = ["InMemoryContactStore"]
