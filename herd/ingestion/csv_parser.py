"""Heuristic CSV tokenizer used for contact uploads.

A double quote toggles an "inside quotes" flag and is never copied into the
field, so ``""`` inside a quoted field is two toggles rather than an escaped
quote.
"""
from __future__ import annotations

import logging
from typing import Dict, List

LOGGER = logging.getLogger(__name__)

RawCsvRow = Dict[str, str]


class EmptyInputError(ValueError):
    """Raised when an upload holds no header line plus at least one data line."""


def split_lines(text: str) -> List[str]:
    """Split ``text`` on line breaks and drop blank lines."""

    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        raise EmptyInputError("File appears to be empty")
    return lines


def split_fields(line: str) -> List[str]:
    """Split one line into fields, honouring commas inside quoted sections."""

    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append(_clean_field("".join(current)))
            current = []
        else:
            current.append(char)

    fields.append(_clean_field("".join(current)))
    return fields


def _clean_field(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def parse_rows(text: str) -> List[RawCsvRow]:
    """Parse CSV ``text`` into header -> value mappings, one per data line."""

    lines = split_lines(text)
    headers = split_fields(lines[0])
    LOGGER.debug("CSV headers found: %s", headers)

    rows: List[RawCsvRow] = []
    for line_number, line in enumerate(lines[1:], start=2):
        values = split_fields(line)
        if len(values) < 2:
            LOGGER.debug("Skipping malformed line %s", line_number)
            continue
        rows.append({header: values[index] if index < len(values) else "" for index, header in enumerate(headers)})
    return rows


__all__ = ["EmptyInputError", "RawCsvRow", "parse_rows", "split_fields", "split_lines"]
