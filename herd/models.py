"""Unified data models for contacts, imports, and the gift chat."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now() -> str:
    """Return the current UTC time as an ISO 8601 string."""

    return datetime.now(timezone.utc).isoformat()


# --- Contacts ---

@dataclass(slots=True)
class ContactRecord:
    """A stored person entity scoped to one owning user."""

    name: str
    owner_id: Optional[str] = None
    id: Optional[int] = None
    email: str = ""
    phone: str = ""
    company: str = ""
    location: str = ""
    job_title: str = ""
    birthday: Optional[str] = None
    notes: str = ""
    relationship: str = ""
    group_name: str = "All"
    interests: List[str] = field(default_factory=list)
    meeting_context: str = ""
    source: str = ""
    created_at: Optional[str] = None

    @property
    def first_name(self) -> str:
        parts = self.name.split(" ")
        return parts[0] if parts else ""

    def as_row(self) -> Dict[str, Any]:
        """Return a flat, serialisable representation of the record."""

        row = {item.name: getattr(self, item.name) for item in fields(self)}
        row["interests"] = list(self.interests)
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ContactRecord":
        known = {item.name for item in fields(cls)}
        values = {key: value for key, value in row.items() if key in known}
        values["interests"] = list(values.get("interests") or [])
        return cls(**values)


@dataclass(slots=True)
class WaitlistEntry:
    """An email address waiting for an invite."""

    email: str
    created_at: str = field(default_factory=utc_now)


# --- Import results ---

@dataclass(slots=True)
class ImportPreview:
    """Records parsed from an upload, plus the few shown before committing."""

    records: List[ContactRecord] = field(default_factory=list)
    preview: List[ContactRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.records)


@dataclass(slots=True)
class ImportSummary:
    """Outcome of a bulk submission."""

    total: int
    inserted: int
    batches: int


# --- Chat ---

@dataclass(frozen=True)
class Product:
    """A catalog entry the assistant may recommend."""

    id: int
    name: str
    brand: str
    price: float
    description: str
    interests: tuple = ()
    pitch: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "description": self.description,
            "interests": list(self.interests),
        }


@dataclass(frozen=True)
class ProductRecommendation:
    """A catalog product suggested for a contact, with a justification."""

    product_id: int
    reason: str
    contact_name: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.product_id,
            "reason": self.reason,
            "contactName": self.contact_name or "",
        }


@dataclass(frozen=True)
class ChatReply:
    """Structured assistant answer returned to the UI layer."""

    response: str
    recommended_products: tuple = ()
    suggested_actions: tuple = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "recommendedProducts": [item.as_dict() for item in self.recommended_products],
            "suggestedActions": list(self.suggested_actions),
        }


@dataclass(frozen=True)
class ChatTurn:
    """One immutable message in a conversation."""

    role: str
    content: str
    recommended_products: tuple = ()
    suggested_actions: tuple = ()
    created_at: str = field(default_factory=utc_now)

    @classmethod
    def from_reply(cls, reply: ChatReply) -> "ChatTurn":
        return cls(
            role="assistant",
            content=reply.response,
            recommended_products=tuple(reply.recommended_products),
            suggested_actions=tuple(reply.suggested_actions),
        )


__all__ = [
    "ChatReply",
    "ChatTurn",
    "ContactRecord",
    "ImportPreview",
    "ImportSummary",
    "Product",
    "ProductRecommendation",
    "WaitlistEntry",
    "utc_now",
]
