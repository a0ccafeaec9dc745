"""
Tests for token issuance and verification.
"""
import time

import pytest

from app.api.auth import extract_token, issue_token, verify_token
from app.core.exceptions import UnauthorizedException

SECRET = "unit-secret"


class TestTokens:
    def test_round_trip(self):
        token = issue_token(SECRET, 42, "agent", 60)
        user = verify_token(SECRET, token)
        assert user.user_id == 42
        assert user.role == "agent"
        assert user.is_agent and not user.is_client

    def test_wrong_secret(self):
        token = issue_token(SECRET, 42, "agent", 60)
        with pytest.raises(UnauthorizedException, match="Invalid token"):
            verify_token("other-secret", token)

    def test_tampered_payload(self):
        token = issue_token(SECRET, 42, "agent", 60)
        forged = issue_token(SECRET, 1, "client", 60).split(".")[0] + "." + token.split(".")[1]
        with pytest.raises(UnauthorizedException):
            verify_token(SECRET, forged)

    def test_expired(self):
        token = issue_token(SECRET, 42, "client", 60)
        with pytest.raises(UnauthorizedException, match="Token expired"):
            verify_token(SECRET, token, now=time.time() + 120)

    def test_unknown_role(self):
        token = issue_token(SECRET, 42, "admin", 60)
        with pytest.raises(UnauthorizedException):
            verify_token(SECRET, token)

    @pytest.mark.parametrize("token", [None, "", "abc", "a.b.c"])
    def test_malformed(self, token):
        with pytest.raises(UnauthorizedException) as exc_info:
            verify_token(SECRET, token)
        assert exc_info.value.status_code == 401


class TestExtractToken:
    def test_bearer_header_wins(self):
        assert extract_token("Bearer abc", cookie="cookie", query="query") == "abc"

    def test_cookie_then_query(self):
        assert extract_token(None, cookie="cookie", query="query") == "cookie"
        assert extract_token(None, query="query") == "query"

    def test_non_bearer_scheme_ignored(self):
        assert extract_token("Basic xyz") is None
