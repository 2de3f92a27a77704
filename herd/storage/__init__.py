"""Storage collaborators for contact records and waitlist entries."""

from .base import ContactStore, DuplicateEntryError, StorageError
from .memory import InMemoryContactStore
from .sqlite import SqliteContactStore

__all__ = [
    "ContactStore",
    "DuplicateEntryError",
    "InMemoryContactStore",
    "SqliteContactStore",
    "StorageError",
]
