from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    API_BASE_URL,
    CACHE_FETCH_TIMEOUT_SECONDS,
    FETCH_MAX_ATTEMPTS,
    HTTP_REQUEST_TIMEOUT_SECONDS,
    REST_TIMER_CACHE_TTL_SECONDS,
    STORAGE_PATH,
    TOKEN_REFRESH_THRESHOLD_SECONDS,
    TOKEN_REFRESH_TIMEOUT_SECONDS,
)


class ClientSettings(BaseModel):
    """Runtime settings for the API client.

    Attributes:
        api_base_url: Base URL of the REST API (no trailing slash needed).
        storage_path: JSON file holding the persisted token and settings.
            ``None`` keeps state in memory only.
        request_timeout_seconds: Per-request HTTP timeout.
        refresh_threshold_seconds: Remaining token lifetime that triggers a
            proactive refresh.
        refresh_timeout_seconds: Upper bound on one refresh call.
        cache_ttl_seconds: Freshness window of the rest-timer cache.
        cache_fetch_timeout_seconds: Upper bound on one cache fetch; raised to
            the retry budget when that is longer.
        fetch_max_attempts: Attempts for list fetches on network errors.
    """

    model_config = ConfigDict(extra="ignore")

    api_base_url: str = API_BASE_URL
    storage_path: str | None = STORAGE_PATH
    request_timeout_seconds: float = Field(default=HTTP_REQUEST_TIMEOUT_SECONDS, gt=0)
    refresh_threshold_seconds: float = Field(
        default=TOKEN_REFRESH_THRESHOLD_SECONDS, ge=0
    )
    refresh_timeout_seconds: float = Field(default=TOKEN_REFRESH_TIMEOUT_SECONDS, gt=0)
    cache_ttl_seconds: float = Field(default=REST_TIMER_CACHE_TTL_SECONDS, ge=0)
    cache_fetch_timeout_seconds: float = Field(
        default=CACHE_FETCH_TIMEOUT_SECONDS, gt=0
    )
    fetch_max_attempts: int = Field(default=FETCH_MAX_ATTEMPTS, ge=1)

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must start with http:// or https://")
        return v


class TimerSettings(BaseModel):
    """Local rest-timer alert preferences."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    notifications_enabled: bool = Field(default=True, alias="notificationsEnabled")
    vibration_enabled: bool = Field(default=True, alias="vibrationEnabled")
    sound_enabled: bool = Field(default=True, alias="soundEnabled")
