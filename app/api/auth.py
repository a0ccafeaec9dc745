"""
Bearer-token authentication.

Tokens are ``<payload>.<signature>``: a base64url JSON payload
``{"uid", "role", "exp"}`` signed with HMAC-SHA256 over AUTH_SECRET.
Session issuance lives outside this service (``scripts/create_user.py``
prints a token for local use); this module only verifies them.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket

from app.api.marketplace.common import get_services
from app.core.async_db import run_db
from app.core.exceptions import UnauthorizedException
from app.domain.entities import AuthUser, User
from app.domain.value_objects import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

AUTH_COOKIE_NAME = "auth_token"
TOKEN_QUERY_PARAM = "token"
_VALID_ROLES = {role.value for role in UserRole}


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


def _sign(secret: str, payload: str) -> str:
    digest = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).digest()
    return _b64encode(digest)


def issue_token(secret: str, user_id: int, role: str, ttl_seconds: int) -> str:
    """Create a signed token for ``user_id`` valid for ``ttl_seconds``."""
    body = {"uid": int(user_id), "role": role, "exp": int(time.time()) + int(ttl_seconds)}
    payload = _b64encode(json.dumps(body, separators=(",", ":")).encode())
    return f"{payload}.{_sign(secret, payload)}"


def verify_token(secret: str, token: str | None, now: float | None = None) -> AuthUser:
    """Resolve a token to the caller identity or raise ``UnauthorizedException``."""
    if not token or token.count(".") != 1:
        raise UnauthorizedException()

    payload, signature = token.split(".", 1)
    if not hmac.compare_digest(_sign(secret, payload), signature):
        raise UnauthorizedException("Invalid token")

    try:
        body: dict[str, Any] = json.loads(_b64decode(payload))
        user_id = int(body["uid"])
        role = str(body["role"])
        expires_at = int(body["exp"])
    except (ValueError, KeyError, TypeError):
        raise UnauthorizedException("Invalid token") from None

    if role not in _VALID_ROLES:
        raise UnauthorizedException("Invalid token")
    if expires_at <= (now if now is not None else time.time()):
        raise UnauthorizedException("Token expired")

    return AuthUser(user_id=user_id, role=role)


def extract_token(
    authorization: str | None, cookie: str | None = None, query: str | None = None
) -> str | None:
    """Bearer header first, then cookie, then query parameter."""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return cookie or query or None


async def require_auth(request: Request) -> AuthUser:
    """FastAPI dependency: resolve the caller or fail with 401."""
    token = extract_token(
        request.headers.get("Authorization"),
        request.cookies.get(AUTH_COOKIE_NAME),
        request.query_params.get(TOKEN_QUERY_PARAM),
    )
    return verify_token(get_services().settings.auth_secret, token)


def authenticate_websocket(websocket: WebSocket) -> AuthUser:
    """Same token sources as ``require_auth`` for WebSocket handshakes."""
    token = extract_token(
        websocket.headers.get("Authorization"),
        websocket.cookies.get(AUTH_COOKIE_NAME),
        websocket.query_params.get(TOKEN_QUERY_PARAM),
    )
    return verify_token(get_services().settings.auth_secret, token)


@router.get("/me")
async def whoami(user: AuthUser = Depends(require_auth)) -> dict[str, Any]:
    """Current user profile."""
    row = await run_db(get_services().db.get_user, user.user_id)
    if not row:
        logger.warning(f"Token for unknown user {user.user_id}")
        raise UnauthorizedException("User not found")
    return {"user": User.from_db_row(row).to_dict()}
