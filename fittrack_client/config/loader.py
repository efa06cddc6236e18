"""Settings loading from an optional JSON file plus environment overrides."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from pydantic import ValidationError

from .model import ClientSettings

CONFIG_FILE_ENV = "FITTRACK_CONF_FILE"

# Environment variable -> settings field
_ENV_OVERRIDES = {
    "FITTRACK_API_URL": "api_base_url",
    "FITTRACK_STORAGE_PATH": "storage_path",
    "FITTRACK_REQUEST_TIMEOUT": "request_timeout_seconds",
}


def _read_config_file(path: str) -> dict[str, Any]:
    try:
        with open(os.path.expanduser(path), encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logging.debug(f"No config file at {path}; using defaults")
        return {}
    except (OSError, ValueError) as e:
        logging.error(f"💥 Config file load error path={path}: {e}")
        return {}
    if not isinstance(data, dict):
        logging.warning(f"⚠️ Ignoring config file without a JSON object path={path}")
        return {}
    return data


def load_settings(
    config_file: str | None = None, overrides: dict[str, Any] | None = None
) -> ClientSettings:
    """Build settings from file, environment and explicit overrides (in that order).

    Args:
        config_file: Path to a JSON config file; defaults to ``$FITTRACK_CONF_FILE``.
        overrides: Highest-priority values, e.g. from CLI flags.

    Raises:
        ValueError: If the merged settings are invalid.
    """
    path = config_file or os.environ.get(CONFIG_FILE_ENV)
    raw: dict[str, Any] = _read_config_file(path) if path else {}
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            raw[field_name] = value
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ClientSettings(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid client settings: {e}") from e
