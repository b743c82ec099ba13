"""Application settings for LeadAlerts.

Settings are read from the environment once and then passed explicitly into
the components that need them (delivery gateway, dispatcher, formatter,
digest builder). Nothing reads a bot token from module-level state.

Environment variables:
    LEADALERTS_DELIVERY          "fake" (default) or "telegram"
    TELEGRAM_BOT_TOKEN           Bot token for the Telegram adapter
    TELEGRAM_API_BASE            Telegram Bot API base URL
    LEADALERTS_SEND_TIMEOUT      Per-call delivery timeout in seconds
    LEADALERTS_DISPATCH_WORKERS  Fan-out thread pool size per batch
    LEADALERTS_DIGEST_HOUR       Tenant-local hour for the daily digest
    LEADALERTS_TRUNCATE_AT       Max length of free-text fields in messages
    LEADALERTS_CRM_URL           Link appended to lead messages
"""

import os
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class DeliveryBackend(Enum):
    FAKE = "fake"
    TELEGRAM = "telegram"


class Settings(BaseModel):
    delivery_backend: DeliveryBackend = DeliveryBackend.FAKE
    telegram_bot_token: str | None = None
    telegram_api_base: str = "https://api.telegram.org"
    send_timeout_seconds: float = Field(default=5.0, gt=0)
    dispatch_workers: int = Field(default=4, ge=1, le=32)
    digest_hour: int = Field(default=9, ge=0, le=23)
    truncate_at: int = Field(default=200, ge=10)
    crm_url: str | None = None

    @field_validator("telegram_api_base")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, ignoring unset ones."""
        env = os.environ if environ is None else environ

        mapping = {
            "delivery_backend": "LEADALERTS_DELIVERY",
            "telegram_bot_token": "TELEGRAM_BOT_TOKEN",
            "telegram_api_base": "TELEGRAM_API_BASE",
            "send_timeout_seconds": "LEADALERTS_SEND_TIMEOUT",
            "dispatch_workers": "LEADALERTS_DISPATCH_WORKERS",
            "digest_hour": "LEADALERTS_DIGEST_HOUR",
            "truncate_at": "LEADALERTS_TRUNCATE_AT",
            "crm_url": "LEADALERTS_CRM_URL",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        if "delivery_backend" in values:
            values["delivery_backend"] = values["delivery_backend"].lower()

        return cls.model_validate(values)


_current_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings. Defaults to values read from the environment."""
    global _current_settings
    if _current_settings is None:
        _current_settings = Settings.from_env()
    return _current_settings


def set_settings(settings: Settings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _current_settings
    _current_settings = None
