"""Tests for X-Request-ID middleware.

Tests cover:
- Request ID generation when missing
- Request ID preservation when valid
- Request ID normalization (UUID lowercase)
- Request ID replacement when invalid
- Request ID presence on auth failures and in error bodies
"""

from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from audioshare.middleware.request_id import resolve_request_id
from tests.factories import create_test_track, create_test_user


@pytest.fixture
def headers(db_session: Session, login_as) -> dict[str, str]:
    user = create_test_user(db_session)
    create_test_track(db_session, user)
    return login_as(user)


class TestRequestIdMiddleware:
    """Tests for X-Request-ID middleware."""

    def test_request_id_generated_when_missing(self, client: TestClient, headers):
        response = client.get("/audio/list", headers=headers)

        assert response.status_code == 200
        UUID(response.headers["X-Request-ID"])

    def test_request_id_preserved_when_valid(self, client: TestClient, headers):
        response = client.get("/audio/list", headers={**headers, "X-Request-ID": "abc_def-123"})

        assert response.headers["X-Request-ID"] == "abc_def-123"

    def test_request_id_uuid_normalized_to_lowercase(self, client: TestClient, headers):
        response = client.get(
            "/audio/list",
            headers={**headers, "X-Request-ID": "550E8400-E29B-41D4-A716-446655440000"},
        )

        assert response.headers["X-Request-ID"] == "550e8400-e29b-41d4-a716-446655440000"

    def test_request_id_present_on_auth_failure(self, client: TestClient):
        """Auth failures still include X-Request-ID in header and body."""
        response = client.get("/audio/list")

        assert response.status_code == 401
        assert response.json()["error"]["request_id"] == response.headers["X-Request-ID"]

    def test_error_response_includes_request_id_in_body(self, client: TestClient, headers):
        response = client.get("/audio/get", params={"track": "999"}, headers=headers)

        assert response.status_code == 404
        assert response.json()["error"]["request_id"] == response.headers["X-Request-ID"]

    def test_public_path_gets_request_id(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "probe.1"})

        assert response.headers["X-Request-ID"] == "probe.1"


class TestResolveRequestId:
    """Tests for request ID validation edge cases."""

    @pytest.mark.parametrize("value", ["request.id.with.dots", "a" * 128, "A-b_C.9"])
    def test_accepted(self, value: str):
        assert resolve_request_id(value) == value

    @pytest.mark.parametrize("value", [None, "", "bad id with spaces", "a" * 129, "ünïcode"])
    def test_replaced(self, value):
        new_id = resolve_request_id(value)

        assert new_id != value
        UUID(new_id)

    def test_uuid_shaped_but_invalid_kept(self):
        value = "zzzzzzzz-zzzz-zzzz-zzzz-zzzzzzzzzzzz"

        assert resolve_request_id(value) == value
