"""Configuration package exports."""

from .loader import load_settings
from .model import ClientSettings, TimerSettings
from .timer_settings import get_timer_settings, update_timer_settings

__all__ = [
    "ClientSettings",
    "TimerSettings",
    "load_settings",
    "get_timer_settings",
    "update_timer_settings",
]
