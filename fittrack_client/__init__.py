"""Async client for the FitTrack REST API."""

from .application_context import ApplicationContext
from .config import ClientSettings, load_settings

__all__ = ["ApplicationContext", "ClientSettings", "load_settings"]
