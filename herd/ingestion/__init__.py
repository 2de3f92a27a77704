"""Utilities for importing, normalising, and exporting contact data."""

from .csv_parser import EmptyInputError, RawCsvRow, parse_rows, split_fields, split_lines
from .exporters import contacts_to_dataframe, export_contacts
from .importer import ContactImporter
from .loaders import UnsupportedFileTypeError, load_contact_rows, read_text
from .normalize import ColumnLayout, normalise_row, parse_birthday

__all__ = [
    "ColumnLayout",
    "ContactImporter",
    "EmptyInputError",
    "RawCsvRow",
    "UnsupportedFileTypeError",
    "contacts_to_dataframe",
    "export_contacts",
    "load_contact_rows",
    "normalise_row",
    "parse_birthday",
    "parse_rows",
    "read_text",
    "split_fields",
    "split_lines",
]
