"""
Error Handling Tests

Response envelope, authentication failures, unexpected errors, request
correlation and health reporting.
"""

from datetime import timedelta

import pytest
from fastapi import status

import database.operations
from utils.auth import create_access_token
from utils.errors import (
    ValidationError,
    AuthenticationError,
    NotFoundError,
    ConflictError,
    InternalError,
    get_error_handler,
)


class TestExceptionTaxonomy:
    """Test status codes and envelopes of the application errors."""

    @pytest.mark.parametrize("error, status_code", [
        (ValidationError("bad"), 400),
        (AuthenticationError(), 401),
        (NotFoundError(), 404),
        (ConflictError("taken"), 409),
        (ConflictError("taken", status_code=400), 400),
        (InternalError(), 500),
    ])
    def test_status_codes(self, error, status_code):
        assert error.status_code == status_code

    def test_envelope_hides_details_by_default(self):
        error = ValidationError("Invalid email format", field="email")

        assert error.to_dict() == {"success": False, "message": "Invalid email format", "error": "VALIDATION_ERROR"}
        assert error.to_dict(include_details=True)["details"] == {"field": "email"}


class TestAuthenticationFailures:
    """Every bad Authorization header is the same 401."""

    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": "Basic dXNlcjpwYXNz"},
        {"Authorization": "Bearer"},
        {"Authorization": "Bearer not.a.jwt"},
    ])
    def test_bad_headers(self, client, headers):
        response = client.get("/api/auth/preferences", headers=headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {
            "success": False,
            "message": "Invalid or missing authentication token",
            "error": "AUTHENTICATION_ERROR",
        }

    def test_expired_token(self, client, registered_user):
        user = registered_user["user"]
        token = create_access_token(
            {"user_id": user["id"], "email": user["email"], "username": user["username"]},
            expires_delta=timedelta(seconds=-5),
        )

        response = client.get("/api/auth/preferences", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestUnexpectedErrors:
    """Test the generic 500 response."""

    def test_unhandled_exception_is_generic_500(self, client, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("connection string postgres://secret")

        monkeypatch.setattr(database.operations, "get_user_by_login", explode)
        errors_before = get_error_handler().error_count

        response = client.post("/api/auth/login", json={"email": "alice", "password": "Abcdef1"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"success": False, "message": "Internal server error", "error": "INTERNAL_ERROR"}
        assert "secret" not in response.text
        assert get_error_handler().error_count == errors_before + 1

    def test_unhandled_exception_keeps_cors_and_correlation_headers(self, client, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(database.operations, "get_user_by_login", explode)

        response = client.post(
            "/api/auth/login",
            json={"email": "alice", "password": "Abcdef1"},
            headers={"Origin": "http://localhost:3000", "X-Correlation-ID": "abc-123"},
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"] == "INTERNAL_ERROR"
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["x-correlation-id"] == "abc-123"

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/api/auth/login",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid request body"


class TestRequestHandling:
    """Test correlation IDs and health."""

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "req-123"})

        assert response.headers["X-Correlation-ID"] == "req-123"

    def test_correlation_id_is_generated(self, client):
        response = client.get("/health")

        assert response.headers["X-Correlation-ID"]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] is True
        assert "total_errors" in data["errors"]
