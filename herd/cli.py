"""Command line interface for importing, exporting and chatting about contacts."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from .chat.completion import CompletionServiceError
from .config import ConfigurationError, load_configuration, load_settings
from .contacts import ALL_GROUPS, ContactService
from .factory import build_importer, build_orchestrator, build_store
from .ingestion.csv_parser import EmptyInputError
from .ingestion.exporters import export_contacts
from .ingestion.loaders import UnsupportedFileTypeError, load_contact_rows
from .storage.base import StorageError

LOGGER = logging.getLogger(__name__)


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description="Manage contacts and ask for gift ideas")
    parser.add_argument(
        "--config",
        help="Path to a configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    import_cmd = commands.add_parser("import", help="Import contacts from a CSV export or Excel workbook")
    import_cmd.add_argument("input", help="Path to the contacts file")
    import_cmd.add_argument("--user", required=True, help="Owner id the contacts belong to")
    import_cmd.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and preview the file without storing anything",
    )

    export_cmd = commands.add_parser("export", help="Export stored contacts to CSV or Excel")
    export_cmd.add_argument("output", help="Path where the contacts should be written")
    export_cmd.add_argument("--user", required=True, help="Owner id whose contacts are exported")
    export_cmd.add_argument("--group", default=ALL_GROUPS, help="Only export contacts in this group")

    chat_cmd = commands.add_parser("chat", help="Ask the gift assistant a question")
    chat_cmd.add_argument("message", help="Message to send")
    chat_cmd.add_argument("--user", required=True, help="Owner id whose contacts are searched")

    serve_cmd = commands.add_parser("serve", help="Run the HTTP API")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=5000)
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    load_dotenv()

    try:
        config = load_configuration(args.config) if args.config else {}
        return _COMMANDS[args.command](args, config)
    except ConfigurationError as exc:
        logging.error("Configuration error: %s", exc)
        return 1


def _run_import(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    settings = load_settings(config)
    try:
        rows = load_contact_rows(args.input)
    except (EmptyInputError, UnsupportedFileTypeError, FileNotFoundError) as exc:
        logging.error("Cannot read %s: %s", args.input, exc)
        return 1

    store = build_store(config, settings)
    importer = build_importer(config, settings, store)
    parsed = importer.parse_rows(rows, args.user)

    print(f"Preview (first {len(parsed.preview)} of {parsed.total} contacts)")
    for record in parsed.preview:
        details = " | ".join(value for value in (record.email, record.phone, record.company) if value)
        print(f"  {record.name}" + (f"  {details}" if details else ""))

    if args.dry_run:
        logging.info("Dry run: %s contacts parsed, nothing stored", parsed.total)
        return 0

    try:
        summary = importer.submit(parsed.records)
    except StorageError as exc:
        logging.error("Import failed: %s", exc)
        return 1
    logging.info("Imported %s contacts in %s batches", summary.inserted, summary.batches)
    return 0


def _run_export(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    settings = load_settings(config)
    store = build_store(config, settings)
    try:
        records = ContactService(store).list_contacts(args.user, args.group)
        destination = export_contacts(records, args.output)
    except (StorageError, UnsupportedFileTypeError) as exc:
        logging.error("Export failed: %s", exc)
        return 1
    logging.info("Exported %s contacts to %s", len(records), Path(destination).resolve())
    return 0


def _run_chat(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    settings = load_settings(config)
    store = build_store(config, settings)
    orchestrator = build_orchestrator(config, settings, store)
    try:
        reply = orchestrator.reply(args.message, args.user)
    except CompletionServiceError as exc:
        logging.error("Chat request failed: %s", exc)
        return 1
    print(json.dumps(reply.as_dict(), indent=2, ensure_ascii=False))
    return 0


def _run_serve(args: argparse.Namespace, config: Dict[str, Any]) -> int:  # pragma: no cover - blocks
    from .web.app import create_app

    create_app(config=config).run(host=args.host, port=args.port)
    return 0


_COMMANDS = {
    "import": _run_import,
    "export": _run_export,
    "chat": _run_chat,
    "serve": _run_serve,
}


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
