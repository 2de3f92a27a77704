"""Field extraction policy turning raw upload rows into contact records."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence, Tuple

import pandas as pd

from ..models import ContactRecord, utc_now

LOGGER = logging.getLogger(__name__)

IMPORT_RELATIONSHIP = "iPhone Contact"
IMPORT_GROUP = "Imported"
IMPORT_SOURCE = "csv_import"
PLACEHOLDER_NAMES = frozenset({"Unknown"})
# m/d/yy: 00-49 is 20yy, 50-99 is 19yy
_SHORT_YEAR_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$")


@dataclass(frozen=True)
class ColumnLayout:
    """Column names recognised in an upload; defaults follow the Apple Contacts export."""

    first_name: str = "First name"
    middle_name: str = "Middle name"
    last_name: str = "Last name"
    emails: Tuple[str, ...] = ("Email : home", "Email : work", "Email : ", "Email : other")
    phones: Tuple[str, ...] = (
        "Phone : mobile",
        "Phone : iPhone",
        "Phone : home",
        "Phone : work",
        "Phone : ",
        "Phone : main",
    )
    cities: Tuple[str, ...] = ("Address : home : City", "Address : work : City")
    states: Tuple[str, ...] = ("Address : home : State", "Address : work : State")
    company: str = "Company"
    job_title: str = "Job title"
    birthday: str = "Birthday"
    notes: str = "Notes"

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "ColumnLayout":
        """Build a layout overriding the defaults with ``mapping`` entries."""

        if not mapping:
            return cls()
        known = {item.name: item for item in fields(cls)}
        values = {}
        for key, value in mapping.items():
            if key not in known:
                LOGGER.warning("Ignoring unknown column layout key %s", key)
                continue
            if isinstance(getattr(cls(), key), tuple):
                values[key] = (value,) if isinstance(value, str) else tuple(value)
            else:
                values[key] = str(value)
        return cls(**values)


def build_name(row: Mapping[str, str], layout: ColumnLayout) -> str:
    parts = [row.get(column) or "" for column in (layout.first_name, layout.middle_name, layout.last_name)]
    return " ".join(part for part in parts if part.strip()).strip()


def extract_email(row: Mapping[str, str], layout: ColumnLayout) -> str:
    for column in layout.emails:
        value = row.get(column)
        if value and "@" in value:
            return value
    return ""


def extract_phone(row: Mapping[str, str], layout: ColumnLayout) -> str:
    for column in layout.phones:
        value = row.get(column)
        if value and sum(char.isdigit() for char in value) >= 7:
            return value
    return ""


def extract_location(row: Mapping[str, str], layout: ColumnLayout) -> str:
    city = _first_present(row, layout.cities)
    state = _first_present(row, layout.states)
    return ", ".join(part for part in (city, state) if part).strip()


def _first_present(row: Mapping[str, str], columns: Sequence[str]) -> str:
    for column in columns:
        value = row.get(column)
        if value:
            return value
    return ""


def parse_birthday(value: Optional[str]) -> Optional[str]:
    """Return ``value`` as ``YYYY-MM-DD`` or ``None`` when it is not a date.

    Exports such as ``3/22/01 4:07 PM`` carry a time; only the text before the
    first space is tried first, then the whole value.
    """

    if not value or not value.strip():
        return None
    cleaned = value.strip()
    candidates = [cleaned.split(" ")[0], cleaned] if " " in cleaned else [cleaned]
    for candidate in candidates:
        parsed = _to_date(candidate)
        if parsed is not None:
            return parsed
    return None


def _to_date(text: str) -> Optional[str]:
    short_year = _SHORT_YEAR_DATE.match(text)
    if short_year:
        month, day, year = short_year.groups()
        century = 2000 if int(year) < 50 else 1900
        text = f"{month}/{day}/{century + int(year)}"
    try:
        timestamp = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(timestamp):
        return None
    return timestamp.strftime("%Y-%m-%d")


def normalise_row(
    row: Mapping[str, Any],
    *,
    owner_id: Optional[str] = None,
    layout: Optional[ColumnLayout] = None,
    created_at: Optional[str] = None,
) -> Optional[ContactRecord]:
    """Map a raw row onto a :class:`ContactRecord`, or ``None`` if it has no usable name."""

    layout = layout or ColumnLayout()
    text_row = {str(key): _clean_text(value) for key, value in row.items()}

    name = build_name(text_row, layout)
    if not name or name in PLACEHOLDER_NAMES:
        return None

    return ContactRecord(
        name=name,
        owner_id=owner_id,
        email=extract_email(text_row, layout),
        phone=extract_phone(text_row, layout),
        company=text_row.get(layout.company, ""),
        location=extract_location(text_row, layout),
        job_title=text_row.get(layout.job_title, ""),
        birthday=parse_birthday(text_row.get(layout.birthday)),
        notes=text_row.get(layout.notes, ""),
        relationship=IMPORT_RELATIONSHIP,
        group_name=IMPORT_GROUP,
        source=IMPORT_SOURCE,
        created_at=created_at or utc_now(),
    )


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


__all__ = [
    "ColumnLayout",
    "IMPORT_GROUP",
    "IMPORT_RELATIONSHIP",
    "IMPORT_SOURCE",
    "build_name",
    "extract_email",
    "extract_location",
    "extract_phone",
    "normalise_row",
    "parse_birthday",
]
