"""Single-contact operations and waitlist sign-up on top of a contact store."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .models import ContactRecord, WaitlistEntry, utc_now
from .storage.base import ContactStore

LOGGER = logging.getLogger(__name__)

GROUPS = ("All", "Family", "Work", "Friends", "Professional")
ALL_GROUPS = "All"

_OPTIONAL_TEXT_FIELDS = (
    "email",
    "phone",
    "company",
    "location",
    "notes",
    "relationship",
    "job_title",
    "meeting_context",
)
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ContactValidationError(ValueError):
    """Raised when submitted contact fields are unusable."""


def parse_interests(value: Union[str, Iterable[str], None]) -> List[str]:
    """Split a comma-separated interests string (or clean a list), keeping order."""

    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [str(item).strip() for item in items if str(item).strip()]


def clean_contact_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    name = str(fields.get("name") or "").strip()
    if not name:
        raise ContactValidationError("Name is required")

    cleaned: Dict[str, Any] = {"name": name}
    for key in _OPTIONAL_TEXT_FIELDS:
        cleaned[key] = str(fields.get(key) or "").strip()
    cleaned["group_name"] = str(fields.get("group_name") or ALL_GROUPS).strip() or ALL_GROUPS
    cleaned["interests"] = parse_interests(fields.get("interests"))
    cleaned["birthday"] = str(fields.get("birthday") or "").strip() or None
    return cleaned


class ContactService:
    """Create, edit, delete and list one owner's contacts."""

    def __init__(self, store: ContactStore) -> None:
        self._store = store

    def create_contact(self, owner_id: str, fields: Mapping[str, Any]) -> ContactRecord:
        cleaned = clean_contact_fields(fields)
        record = ContactRecord(owner_id=owner_id, source="manual", created_at=utc_now(), **cleaned)
        (stored,) = self._store.insert([record])
        LOGGER.info("Created contact %s for owner %s", stored.id, owner_id)
        return stored

    def update_contact(self, contact_id: int, owner_id: str, fields: Mapping[str, Any]) -> Optional[ContactRecord]:
        updated = self._store.update(contact_id, owner_id, clean_contact_fields(fields))
        if updated is None:
            LOGGER.info("Contact %s not found for owner %s", contact_id, owner_id)
        return updated

    def delete_contact(self, contact_id: int, owner_id: str) -> bool:
        return self._store.delete(contact_id, owner_id) > 0

    def list_contacts(self, owner_id: str, group: str = ALL_GROUPS) -> List[ContactRecord]:
        group_name = None if not group or group == ALL_GROUPS else group
        return self._store.select(owner_id, group_name=group_name, order_by="name")

    def join_waitlist(self, email: str) -> WaitlistEntry:
        email = (email or "").strip()
        if not _EMAIL.match(email):
            raise ContactValidationError("A valid email address is required")
        return self._store.add_waitlist_entry(email)


__all__ = [
    "ALL_GROUPS",
    "ContactService",
    "ContactValidationError",
    "GROUPS",
    "clean_contact_fields",
    "parse_interests",
]
