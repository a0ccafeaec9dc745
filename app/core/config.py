"""Environment-driven configuration objects for the marketplace API."""
from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_TOKEN_TTL_SECONDS = 60 * 60 * 24 * 7
DEFAULT_LIVE_POLL_INTERVAL = 2.0


def _str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"true", "1", "yes", "y"}


def _split_origins(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(slots=True)
class EmailConfig:
    resend_api_key: str | None
    email_from: str

    @property
    def enabled(self) -> bool:
        return bool(self.resend_api_key)


@dataclass(slots=True)
class Settings:
    database_url: str
    auth_secret: str
    auth_token_ttl: int = DEFAULT_TOKEN_TTL_SECONDS
    redis_url: str | None = None
    email: EmailConfig = field(
        default_factory=lambda: EmailConfig(resend_api_key=None, email_from="onboarding@resend.dev")
    )
    live_poll_interval: float = DEFAULT_LIVE_POLL_INTERVAL
    rate_limit: str = "100/minute"
    rate_limit_enabled: bool = True
    environment: str = "production"
    cors_origins: list[str] = field(default_factory=list)
    port: int = 8000

    @property
    def is_dev(self) -> bool:
        return self.environment in ("development", "dev", "local", "test")


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")

    auth_secret = os.getenv("AUTH_SECRET")
    if not auth_secret:
        raise ValueError("AUTH_SECRET environment variable is not set")

    poll_interval = float(os.getenv("LIVE_POLL_INTERVAL", str(DEFAULT_LIVE_POLL_INTERVAL)))
    if poll_interval <= 0:
        raise ValueError("LIVE_POLL_INTERVAL must be positive")

    return Settings(
        database_url=database_url,
        auth_secret=auth_secret,
        auth_token_ttl=int(os.getenv("AUTH_TOKEN_TTL_SECONDS", str(DEFAULT_TOKEN_TTL_SECONDS))),
        redis_url=os.getenv("REDIS_URL") or None,
        email=EmailConfig(
            resend_api_key=os.getenv("RESEND_API_KEY") or None,
            email_from=os.getenv("EMAIL_FROM", "onboarding@resend.dev"),
        ),
        live_poll_interval=poll_interval,
        rate_limit=os.getenv("RATE_LIMIT", "100/minute"),
        rate_limit_enabled=_str_to_bool(os.getenv("RATE_LIMIT_ENABLED"), default=True),
        environment=os.getenv("ENVIRONMENT", "production").lower(),
        cors_origins=_split_origins(os.getenv("CORS_ALLOWED_ORIGINS")),
        port=int(os.getenv("PORT", "8000")),
    )
