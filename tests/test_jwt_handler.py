"""
Session Token Tests

Issue/verify round trip, expiry, tampering and Authorization header parsing.
"""

import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from config import settings
from utils.auth.jwt_handler import (
    JWTHandler,
    extract_bearer_token,
    create_access_token,
    verify_access_token,
)

SECRET = "unit-test-secret-key-that-is-long-enough-0123"
CLAIMS = {"user_id": "42", "email": "a@b.com", "username": "abc"}


@pytest.fixture
def handler():
    return JWTHandler(secret_key=SECRET)


class TestTokenIssue:
    """Test token creation."""

    def test_round_trip_returns_original_claims(self, handler):
        payload = handler.verify_access_token(handler.create_access_token(CLAIMS))

        assert payload["user_id"] == "42"
        assert payload["email"] == "a@b.com"
        assert payload["username"] == "abc"

    def test_default_expiry_is_seven_days(self, handler):
        payload = handler.verify_access_token(handler.create_access_token(CLAIMS))

        assert payload["exp"] - payload["iat"] == int(timedelta(days=7).total_seconds())

    def test_only_identity_claims_are_embedded(self, handler):
        token = handler.create_access_token({**CLAIMS, "password_hash": "secret"})
        payload = handler.verify_access_token(token)

        assert "password_hash" not in payload

    def test_numeric_user_id_is_stringified(self, handler):
        payload = handler.verify_access_token(handler.create_access_token({**CLAIMS, "user_id": 7}))

        assert payload["user_id"] == "7"

    def test_short_secret_is_rejected(self):
        with pytest.raises(ValueError):
            JWTHandler(secret_key="too-short")

    def test_unsupported_algorithm_falls_back_to_hs256(self):
        assert JWTHandler(secret_key=SECRET, algorithm="none").algorithm == "HS256"


class TestTokenVerify:
    """Test that every bad token yields None instead of raising."""

    def test_expired_token_is_rejected(self, handler):
        token = handler.create_access_token(CLAIMS, expires_delta=timedelta(seconds=-10))

        assert handler.verify_access_token(token) is None

    def test_leeway_accepts_recently_expired_token(self):
        lenient = JWTHandler(secret_key=SECRET, leeway_seconds=60)
        token = lenient.create_access_token(CLAIMS, expires_delta=timedelta(seconds=-10))

        assert lenient.verify_access_token(token) is not None

    def test_wrong_secret_is_rejected(self, handler):
        other = JWTHandler(secret_key=SECRET + "-other")

        assert handler.verify_access_token(other.create_access_token(CLAIMS)) is None

    def test_tampered_payload_is_rejected(self, handler):
        header, payload, signature = handler.create_access_token(CLAIMS).split(".")
        claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
        claims["user_id"] = "1"
        forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")

        assert handler.verify_access_token(f"{header}.{forged}.{signature}") is None

    def test_missing_identity_claims_are_rejected(self, handler):
        token = jwt.encode({"username": "abc", "exp": 9999999999}, SECRET, algorithm="HS256")

        assert handler.verify_access_token(token) is None

    @pytest.mark.parametrize("token", [None, "", "not.a.token", "garbage"])
    def test_malformed_tokens_are_rejected(self, handler, token):
        assert handler.verify_access_token(token) is None

    def test_module_helpers_use_configured_secret(self):
        token = create_access_token(CLAIMS)

        assert verify_access_token(token)["user_id"] == "42"
        assert jwt.decode(token, settings.secret_key, algorithms=["HS256"])["email"] == "a@b.com"


class TestBearerHeader:
    """Test Authorization header parsing."""

    def test_bearer_token_extracted(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Basic abc", "bearer abc", "Token abc"])
    def test_other_headers_yield_none(self, header):
        assert extract_bearer_token(header) is None
