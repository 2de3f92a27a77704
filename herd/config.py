"""Configuration helpers for the contact importer and gift chat."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

LOGGER = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}

OVERLOADED_STATUS = 529


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid JSON: {exc}") from exc
    else:
        import yaml

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the completion service, storage, and importer."""

    openai_api_key: str = ""
    completion_model: str = "gpt-4.1-mini"
    max_tokens: int = 1000
    overloaded_status: int = OVERLOADED_STATUS
    max_attempts: int = 3
    backoff_seconds: float = 2.0
    database_path: Path = Path("herd.sqlite3")
    import_batch_size: int = 50
    import_pause_seconds: float = 0.1


# setting name -> (environment variables, configuration key, converter)
_SETTING_SOURCES = {
    "openai_api_key": (("HERD_OPENAI_API_KEY", "OPENAI_API_KEY"), "openai_api_key", str),
    "completion_model": (("HERD_COMPLETION_MODEL",), "completion_model", str),
    "max_tokens": (("HERD_MAX_TOKENS",), "max_tokens", int),
    "overloaded_status": (("HERD_OVERLOADED_STATUS",), "overloaded_status", int),
    "max_attempts": (("HERD_MAX_ATTEMPTS",), "max_attempts", int),
    "backoff_seconds": (("HERD_BACKOFF_SECONDS",), "backoff_seconds", float),
    "database_path": (("HERD_DATABASE_PATH",), "database_path", Path),
    "import_batch_size": (("HERD_IMPORT_BATCH_SIZE",), "import_batch_size", int),
    "import_pause_seconds": (("HERD_IMPORT_PAUSE_SECONDS",), "import_pause_seconds", float),
}


def load_settings(
    config: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build :class:`Settings` from defaults, a configuration mapping and the environment.

    Environment variables take precedence over configuration values, which
    take precedence over the defaults declared on :class:`Settings`.
    """

    config = config or {}
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    for name, (env_names, config_key, convert) in _SETTING_SOURCES.items():
        raw: Any = None
        for env_name in env_names:
            if environ.get(env_name):
                raw = environ[env_name]
                break
        if raw is None and config.get(config_key) is not None:
            raw = config[config_key]
        if raw is None:
            continue
        try:
            values[name] = convert(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid value {raw!r} for setting '{name}'") from exc

    settings = Settings(**values)
    if settings.max_attempts < 1:
        raise ConfigurationError("max_attempts must be at least 1")
    if settings.import_batch_size < 1:
        raise ConfigurationError("import_batch_size must be at least 1")
    LOGGER.debug("Loaded settings for model %s (database %s)", settings.completion_model, settings.database_path)
    return settings
