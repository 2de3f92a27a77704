"""Factory helpers for constructing collaborators from configuration."""
from __future__ import annotations

import importlib
import time
from typing import Any, Dict, Optional

from .chat.catalog import ProductCatalog
from .chat.completion import CompletionClient, OpenAICompletionClient
from .chat.orchestrator import GiftChatOrchestrator
from .chat.retry import RetryPolicy
from .config import ConfigurationError, Settings
from .ingestion.importer import ContactImporter
from .ingestion.normalize import ColumnLayout
from .pacing import DelayPolicy, ExponentialBackoff, Sleeper
from .storage.base import ContactStore
from .storage.sqlite import SqliteContactStore


def _load_class(path: str):
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid class path '{path}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module '{module_name}' does not define '{attr}'") from exc


def build_store(config: Dict[str, Any], settings: Settings) -> ContactStore:
    """Instantiate the store named in ``config['storage']``, defaulting to SQLite."""

    storage_cfg = config.get("storage") or {}
    class_path = storage_cfg.get("class")
    if not class_path:
        return SqliteContactStore(settings.database_path)
    store_cls = _load_class(class_path)
    return store_cls(**(storage_cfg.get("options") or {}))


def build_completion_client(settings: Settings) -> CompletionClient:
    return OpenAICompletionClient(settings.openai_api_key)


def build_importer(
    config: Dict[str, Any],
    settings: Settings,
    store: ContactStore,
    *,
    sleep: Sleeper = time.sleep,
) -> ContactImporter:
    return ContactImporter(
        store,
        layout=ColumnLayout.from_mapping(config.get("columns")),
        batch_size=settings.import_batch_size,
        delay_policy=DelayPolicy(settings.import_pause_seconds),
        sleep=sleep,
    )


def build_orchestrator(
    config: Dict[str, Any],
    settings: Settings,
    store: ContactStore,
    completion: Optional[CompletionClient] = None,
    *,
    sleep: Sleeper = time.sleep,
) -> GiftChatOrchestrator:
    return GiftChatOrchestrator(
        store,
        completion or build_completion_client(settings),
        ProductCatalog.from_config(config),
        model=settings.completion_model,
        max_tokens=settings.max_tokens,
        retry_policy=RetryPolicy(
            max_attempts=settings.max_attempts,
            backoff=ExponentialBackoff(initial_seconds=settings.backoff_seconds),
            retryable_status=settings.overloaded_status,
        ),
        sleep=sleep,
    )


__all__ = ["build_completion_client", "build_importer", "build_orchestrator", "build_store"]
