"""Utilities for loading contact rows from uploaded files."""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, MutableMapping, Optional, Union

import pandas as pd

from .csv_parser import RawCsvRow, parse_rows

PathLike = Union[str, Path]

_CSV_SUFFIXES = {".csv"}
_EXCEL_SUFFIXES = {".xls", ".xlsx", ".xlsm", ".xlsb"}


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


def load_contact_rows(
    path: PathLike,
    *,
    sheet_name: Union[str, int] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[RawCsvRow]:
    """Load header -> value rows from a CSV export or an Excel workbook.

    Parameters
    ----------
    path:
        Path to the CSV/XLSX file to be loaded.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV
        files, which go through the contact CSV splitter instead.
    loader_kwargs:
        Extra keyword arguments forwarded to :func:`pandas.read_excel`.
    """

    path_obj = Path(path)
    suffix = path_obj.suffix.lower()

    if suffix in _CSV_SUFFIXES:
        return parse_rows(read_text(path_obj))

    if suffix in _EXCEL_SUFFIXES:
        return _read_workbook_rows(path_obj, sheet_name=sheet_name, loader_kwargs=loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def read_text(path: PathLike) -> str:
    """Read an uploaded text file, tolerating a UTF-8 byte order mark.

    Bytes that are not valid UTF-8 are replaced rather than rejected.
    """

    return Path(path).read_text(encoding="utf-8-sig", errors="replace")


def _read_workbook_rows(
    path: Path,
    *,
    sheet_name: Union[str, int],
    loader_kwargs: Optional[MutableMapping[str, Any]],
) -> List[RawCsvRow]:
    loader_kwargs = dict(loader_kwargs or {})
    engine = loader_kwargs.pop("engine", None)
    if engine is None and path.suffix.lower() != ".xls":
        engine = "openpyxl"
    dataframe = pd.read_excel(path, sheet_name=sheet_name, engine=engine, dtype=str, **loader_kwargs)
    dataframe = dataframe.fillna("")

    rows: List[RawCsvRow] = []
    for _, series in dataframe.iterrows():
        record = {str(column): str(series[column]).strip() for column in dataframe.columns}
        if any(record.values()):
            rows.append(record)
    return rows


__all__ = ["UnsupportedFileTypeError", "load_contact_rows", "read_text"]
