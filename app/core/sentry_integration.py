"""Sentry integration for error tracking."""
from __future__ import annotations

import logging
import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

_enabled = False


def init_sentry(
    environment: str = "production",
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.1,
) -> bool:
    """Initialize Sentry when SENTRY_DSN is set.

    Returns:
        True if Sentry was initialized
    """
    global _enabled

    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            integrations=[
                # Breadcrumbs from INFO, events from ERROR
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            sample_rate=sample_rate,
            traces_sample_rate=traces_sample_rate,
            send_default_pii=False,
            release=os.getenv("RELEASE_SHA", "unknown"),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    _enabled = True
    logger.info(f"✅ Sentry initialized for {environment} environment")
    return True


def capture_exception(error: Exception, **extra: Any) -> None:
    """Send an exception to Sentry with request context (no-op when disabled)."""
    if not _enabled:
        return

    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in extra.items():
                scope.set_extra(key, value)
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.error(f"Failed to capture exception in Sentry: {e}")
