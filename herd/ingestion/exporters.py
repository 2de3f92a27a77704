"""Export utilities for stored contacts."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import ContactRecord
from .loaders import UnsupportedFileTypeError

PathLike = Union[str, Path]

EXPORT_COLUMNS = [
    "name",
    "email",
    "phone",
    "company",
    "job_title",
    "location",
    "birthday",
    "group_name",
    "relationship",
    "interests",
    "notes",
    "meeting_context",
    "source",
    "created_at",
]


def export_contacts(
    records: Sequence[ContactRecord],
    path: PathLike,
    *,
    include_ids: bool = False,
    sheet_name: str = "Contacts",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write contact records to a CSV, TSV or Excel file."""

    dataframe = contacts_to_dataframe(records, include_ids=include_ids)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def contacts_to_dataframe(records: Sequence[ContactRecord], *, include_ids: bool = False) -> pd.DataFrame:
    """Convert contact records into a :class:`pandas.DataFrame`."""

    columns = (["id", "owner_id"] if include_ids else []) + EXPORT_COLUMNS
    rows = []
    for record in records:
        row = record.as_row()
        row["interests"] = _join_list(record.interests)
        row["birthday"] = record.birthday or ""
        rows.append({column: row.get(column) for column in columns})
    return pd.DataFrame(rows, columns=columns)


def _join_list(values: Iterable[Optional[str]]) -> str:
    cleaned: List[str] = []
    for value in values:
        if not value:
            continue
        text = str(value).strip()
        if text:
            cleaned.append(text)
    return ", ".join(cleaned)


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise UnsupportedFileTypeError(f"Unsupported export file extension: {suffix}")


__all__ = ["EXPORT_COLUMNS", "contacts_to_dataframe", "export_contacts"]
