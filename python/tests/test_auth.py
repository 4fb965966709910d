"""Tests for the session auth middleware.

Tests cover:
- Public paths bypass authentication
- Token extraction from the cookie and the bearer header
- Unknown tokens and resolver failures
- The viewer is bound to the logging context
"""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from audioshare.auth.middleware import PUBLIC_PATHS, AuthMiddleware, Viewer, get_viewer
from audioshare.errors import ApiError
from audioshare.logging import user_id_var
from audioshare.responses import api_error_handler

TOKENS = {"tok-alice": 1, "tok-bob": 2}


def _resolve(token: str) -> int | None:
    if token == "explode":
        raise RuntimeError("session store down")
    return TOKENS.get(token)


@pytest.fixture
def auth_client() -> TestClient:
    app = FastAPI()

    @app.get("/whoami")
    def whoami(viewer: Viewer = Depends(get_viewer)) -> dict:
        return {"user_id": viewer.user_id, "token": viewer.token}

    @app.get("/log-context")
    async def log_context() -> dict:
        return {"user_id": user_id_var.get()}

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_middleware(AuthMiddleware, token_resolver=_resolve, cookie_name="session_id")
    return TestClient(app)


class TestAuthMiddleware:
    def test_public_paths(self):
        assert {"/health", "/registration", "/login", "/logout"} <= PUBLIC_PATHS
        assert "/audio/list" not in PUBLIC_PATHS

    def test_public_path_without_token(self, auth_client: TestClient):
        assert auth_client.get("/health").status_code == 200

    def test_missing_token(self, auth_client: TestClient):
        response = auth_client.get("/whoami")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"

    def test_cookie_token(self, auth_client: TestClient):
        auth_client.cookies.set("session_id", "tok-alice")

        assert auth_client.get("/whoami").json() == {"user_id": 1, "token": "tok-alice"}

    def test_bearer_token(self, auth_client: TestClient):
        response = auth_client.get("/whoami", headers={"Authorization": "Bearer tok-bob"})

        assert response.json()["user_id"] == 2

    def test_cookie_wins_over_header(self, auth_client: TestClient):
        auth_client.cookies.set("session_id", "tok-alice")

        response = auth_client.get("/whoami", headers={"Authorization": "Bearer tok-bob"})

        assert response.json()["user_id"] == 1

    @pytest.mark.parametrize("header", ["Bearer nope", "Bearer ", "Basic dG9rLWFsaWNl", "tok-bob"])
    def test_rejected_headers(self, auth_client: TestClient, header: str):
        response = auth_client.get("/whoami", headers={"Authorization": header})

        assert response.status_code == 401

    def test_resolver_failure_is_500(self, auth_client: TestClient):
        response = auth_client.get("/whoami", headers={"Authorization": "Bearer explode"})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "E_INTERNAL"
        assert "session store down" not in response.text

    def test_viewer_bound_to_log_context(self, auth_client: TestClient):
        """Log entries emitted while handling the request carry the viewer."""
        response = auth_client.get("/log-context", headers={"Authorization": "Bearer tok-bob"})

        assert response.json() == {"user_id": "2"}
