"""Flask application exposing the chat, contact, import and waitlist endpoints."""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS

from ..chat.completion import CompletionClient, CompletionServiceError
from ..config import ConfigurationError, Settings, load_configuration, load_settings
from ..contacts import ContactService, ContactValidationError
from ..factory import build_completion_client, build_importer, build_orchestrator, build_store
from ..ingestion.csv_parser import EmptyInputError
from ..pacing import Sleeper
from ..storage.base import ContactStore, DuplicateEntryError, StorageError

LOGGER = logging.getLogger(__name__)


def create_app(
    *,
    config: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
    store: Optional[ContactStore] = None,
    completion: Optional[CompletionClient] = None,
    sleep: Sleeper = time.sleep,
) -> Flask:
    """Build the application; collaborators default to those described by ``config``."""

    config = config or {}
    settings = settings or load_settings(config)
    if store is None:
        store = build_store(config, settings)

    if completion is None:
        try:
            completion = build_completion_client(settings)
        except ConfigurationError as exc:
            LOGGER.warning("Chat disabled: %s", exc)

    orchestrator = None
    if completion is not None:
        orchestrator = build_orchestrator(config, settings, store, completion, sleep=sleep)
    importer = build_importer(config, settings, store, sleep=sleep)
    contacts = ContactService(store)

    app = Flask(__name__)
    CORS(app, supports_credentials=False)

    @app.post("/api/chat")
    def chat():
        if orchestrator is None:
            return jsonify({"error": "API key not configured"}), 500

        data = request.get_json(silent=True) or {}
        message = data.get("message")
        user_id = data.get("userId")
        LOGGER.debug("Chat request: %s", {"message": message, "userId": user_id})
        if not message or not user_id:
            return jsonify({"error": "Missing data"}), 400

        try:
            reply = orchestrator.reply(str(message), str(user_id))
        except CompletionServiceError as exc:
            LOGGER.exception("Chat request failed")
            return jsonify({"error": "Internal error", "details": str(exc)}), 500
        except Exception as exc:
            LOGGER.exception("Unexpected chat failure")
            return jsonify({"error": "Internal error", "details": str(exc)}), 500
        return jsonify(reply.as_dict())

    @app.get("/api/contacts")
    def list_contacts():
        user_id = request.args.get("userId")
        if not user_id:
            return jsonify({"error": "Missing userId"}), 400
        records = contacts.list_contacts(user_id, request.args.get("group", "All"))
        return jsonify({"contacts": [record.as_row() for record in records]})

    @app.post("/api/contacts")
    def create_contact():
        data = request.get_json(silent=True) or {}
        user_id = data.get("userId")
        if not user_id:
            return jsonify({"error": "Missing userId"}), 400
        record = contacts.create_contact(str(user_id), data.get("contact") or {})
        return jsonify({"contact": record.as_row()}), 201

    @app.put("/api/contacts/<int:contact_id>")
    def update_contact(contact_id: int):
        data = request.get_json(silent=True) or {}
        user_id = data.get("userId")
        if not user_id:
            return jsonify({"error": "Missing userId"}), 400
        record = contacts.update_contact(contact_id, str(user_id), data.get("contact") or {})
        if record is None:
            return jsonify({"error": "Contact not found"}), 404
        return jsonify({"contact": record.as_row()})

    @app.delete("/api/contacts/<int:contact_id>")
    def delete_contact(contact_id: int):
        user_id = request.args.get("userId")
        if not user_id:
            return jsonify({"error": "Missing userId"}), 400
        contacts.delete_contact(contact_id, user_id)
        return "", 204

    @app.post("/api/contacts/import")
    def import_contacts():
        data = request.get_json(silent=True) or {}
        user_id = data.get("userId")
        text = data.get("csv")
        if not user_id or not isinstance(text, str):
            return jsonify({"error": "Missing data"}), 400

        parsed = importer.parse(text, str(user_id))
        body = {"preview": [record.as_row() for record in parsed.preview], "total": parsed.total}
        if data.get("dryRun"):
            return jsonify({**body, "inserted": 0, "batches": 0})
        summary = importer.submit(parsed.records)
        return jsonify({**body, "inserted": summary.inserted, "batches": summary.batches})

    @app.post("/api/waitlist")
    def join_waitlist():
        data = request.get_json(silent=True) or {}
        entry = contacts.join_waitlist(str(data.get("email") or ""))
        return jsonify({"email": entry.email, "created_at": entry.created_at}), 201

    @app.errorhandler(ContactValidationError)
    @app.errorhandler(EmptyInputError)
    def bad_request(exc: ValueError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(DuplicateEntryError)
    def duplicate(exc: DuplicateEntryError):
        return jsonify({"error": "This email is already on our waitlist!"}), 409

    @app.errorhandler(StorageError)
    def storage_failure(exc: StorageError):
        LOGGER.error("Storage failure: %s", exc)
        return jsonify({"error": str(exc)}), 502

    return app


def main() -> Flask:
    """Create the application from environment variables and ``HERD_CONFIG``."""

    load_dotenv()
    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    config_path = os.getenv("HERD_CONFIG")
    config = load_configuration(config_path) if config_path else {}
    return create_app(config=config)


__all__ = ["create_app", "main"]
