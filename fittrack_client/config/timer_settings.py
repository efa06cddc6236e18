"""Persisted rest-timer alert preferences."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from ..constants import TIMER_SETTINGS_KEY
from ..storage import KeyValueStorage
from .model import TimerSettings


def get_timer_settings(storage: KeyValueStorage) -> TimerSettings:
    """Stored preferences merged over the defaults."""
    raw = storage.get(TIMER_SETTINGS_KEY)
    if not raw:
        return TimerSettings()
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("timer settings must be a JSON object")
        return TimerSettings.model_validate(data)
    except (ValueError, ValidationError) as e:
        logging.warning(f"⚠️ Failed to load timer settings, using defaults: {e}")
        return TimerSettings()


def update_timer_settings(storage: KeyValueStorage, **changes: bool) -> TimerSettings:
    """Merge ``changes`` (snake_case field names) into the stored preferences."""
    unknown = set(changes) - set(TimerSettings.model_fields)
    if unknown:
        raise ValueError(f"Unknown timer settings: {', '.join(sorted(unknown))}")
    current = get_timer_settings(storage)
    updated = current.model_copy(update=changes)
    storage.set(TIMER_SETTINGS_KEY, json.dumps(updated.model_dump(by_alias=True)))
    return updated
