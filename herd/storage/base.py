"""Storage collaborator interface shared by the importer, chat, and contact service."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence

from ..models import ContactRecord, WaitlistEntry


class StorageError(RuntimeError):
    """Raised when the storage collaborator rejects a read or write."""


class DuplicateEntryError(StorageError):
    """Raised when an insert violates a uniqueness constraint."""


class ContactStore(Protocol):
    """Protocol every contact store must follow; all calls are scoped by owner id."""

    def select(
        self,
        owner_id: str,
        *,
        name_contains: Optional[str] = None,
        group_name: Optional[str] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> List[ContactRecord]:  # pragma: no cover - runtime protocol
        """Return the owner's contacts, optionally filtered by a case-insensitive name substring."""

    def insert(self, records: Sequence[ContactRecord]) -> List[ContactRecord]:  # pragma: no cover - runtime protocol
        """Store ``records`` and return them with their assigned ids."""

    def update(
        self, contact_id: int, owner_id: str, changes: Mapping[str, Any]
    ) -> Optional[ContactRecord]:  # pragma: no cover - runtime protocol
        """Apply ``changes`` to one contact; ``None`` when the owner has no such contact."""

    def delete(self, contact_id: int, owner_id: str) -> int:  # pragma: no cover - runtime protocol
        """Delete one contact and return the number of rows removed."""

    def delete_all(self, owner_id: str) -> int:  # pragma: no cover - runtime protocol
        """Delete every contact of the owner."""

    def add_waitlist_entry(self, email: str) -> WaitlistEntry:  # pragma: no cover - runtime protocol
        """Record a waitlist sign-up, raising :class:`DuplicateEntryError` for a known email."""


ORDERABLE_FIELDS = frozenset({"id", "name", "created_at", "company", "group_name"})

UPDATABLE_FIELDS = frozenset(
    {
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
    }
)


def check_order_by(order_by: Optional[str]) -> Optional[str]:
    if order_by is not None and order_by not in ORDERABLE_FIELDS:
        raise StorageError(f"Cannot order contacts by '{order_by}'")
    return order_by


def check_changes(changes: Mapping[str, Any]) -> dict:
    unknown = sorted(set(changes) - UPDATABLE_FIELDS)
    if unknown:
        raise StorageError(f"Cannot update contact fields: {', '.join(unknown)}")
    return dict(changes)


__all__ = [
    "ContactStore",
    "DuplicateEntryError",
    "ORDERABLE_FIELDS",
    "StorageError",
    "UPDATABLE_FIELDS",
    "check_changes",
    "check_order_by",
]
