"""
FastAPI application for the LogiFlow marketplace API.

Wires the store, notification bus and e-mail notifier into the route
services, and maps domain errors to ``{"error", "code"}`` JSON bodies.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.auth import router as auth_router
from app.api.marketplace import build_services, set_services
from app.api.marketplace.router import router as marketplace_router
from app.api.rate_limit import limiter
from app.api.websocket_manager import get_connection_manager
from app.core.config import Settings, load_settings
from app.core.exceptions import LogiflowException
from app.core.notifications import (
    NotificationBus,
    create_notification_bus,
    set_notification_bus,
)
from app.core.sentry_integration import capture_exception
from app.integrations.email_notifier import EmailNotifier
from database_protocol import DatabaseProtocol

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8080",
]


def _error_body(message: str, code: str) -> dict[str, str]:
    return {"error": message, "code": code}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_api_app(
    db: DatabaseProtocol,
    settings: Settings | None = None,
    bus: NotificationBus | None = None,
    email_notifier: EmailNotifier | None = None,
) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        db: Store implementing ``DatabaseProtocol``
        settings: Typed settings; loaded from the environment when omitted
        bus: Notification bus; Redis-backed when REDIS_URL is set
        email_notifier: Resend client; built from settings when omitted
    """
    settings = settings or load_settings()
    bus = bus or create_notification_bus(settings.redis_url)
    email_notifier = email_notifier or EmailNotifier(
        settings.email.resend_api_key, settings.email.email_from
    )

    # Set immediately so routes work without lifespan events (plain ASGI usage)
    set_services(build_services(db, settings, bus, email_notifier))
    set_notification_bus(bus)
    logger.info("✅ Database connected to API")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 LogiFlow API starting...")
        yield
        logger.info("👋 LogiFlow API shutting down...")
        closed = await get_connection_manager().close_all()
        if closed:
            logger.info(f"Closed {closed} live WebSocket connection(s)")
        await bus.close()
        await email_notifier.close()

    app = FastAPI(
        title="LogiFlow API",
        description="Shipment marketplace: clients post shipments, agents quote offers",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Rate limiting
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(LogiflowException)
    async def logiflow_exception_handler(request: Request, exc: LogiflowException):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path} failed: {exc.message}")
            capture_exception(exc, path=request.url.path)
            return JSONResponse(
                status_code=500, content=_error_body(INTERNAL_ERROR_MESSAGE, "internal_error")
            )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.code))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400, content=_error_body(_validation_message(exc), "validation_error")
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
        capture_exception(exc, path=request.url.path)
        return JSONResponse(
            status_code=500, content=_error_body(INTERNAL_ERROR_MESSAGE, "internal_error")
        )

    # ✅ SECURITY: explicit origins only; localhost only in development
    allowed_origins = list(settings.cors_origins)
    if settings.is_dev:
        allowed_origins.extend(o for o in DEV_ORIGINS if o not in allowed_origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Sentry-Trace", "Baggage"],
        expose_headers=["Content-Length", "Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith("/api/"):
            response.headers.setdefault("Cache-Control", "no-store")
        return response

    app.include_router(auth_router)
    app.include_router(marketplace_router)

    @app.get("/")
    async def root():
        return {"service": "LogiFlow API", "version": "1.0.0", "docs": "/api/docs"}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
