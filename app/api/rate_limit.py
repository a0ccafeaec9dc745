from __future__ import annotations

import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

# Per-route limit for offer submission, on top of the global default
OFFER_SUBMIT_LIMIT = os.getenv("RATE_LIMIT_OFFERS", "30/minute")


def _rate_limit_storage_uri() -> str | None:
    return os.getenv("RATE_LIMIT_REDIS_URL") or os.getenv("REDIS_URL") or None


def _get_client_ip(request: Request) -> str:
    """Resolve client IP with proxy headers support."""
    xff = request.headers.get("X-Forwarded-For")
    if xff:
        parts = [part.strip() for part in xff.split(",") if part.strip()]
        if parts:
            return parts[0]

    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip.strip()

    return get_remote_address(request)


def _enabled() -> bool:
    return os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() in {"1", "true", "yes", "y"}


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[os.getenv("RATE_LIMIT", "100/minute")],
    storage_uri=_rate_limit_storage_uri() or "memory://",
    enabled=_enabled(),
)


__all__ = ["limiter", "OFFER_SUBMIT_LIMIT"]
