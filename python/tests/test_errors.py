"""Tests for error handling and response envelopes.

Verifies:
- Error envelope shape is correct
- Every error code maps to correct HTTP status
- Unknown exceptions and database failures return E_INTERNAL with 500
- Unknown routes and bad parameters use the same envelope
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from audioshare.errors import (
    ERROR_CODE_TO_STATUS,
    ApiError,
    ApiErrorCode,
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    UnauthenticatedError,
)
from audioshare.responses import (
    error_response,
    store_error_handler,
    unhandled_exception_handler,
)
from tests.factories import create_test_user


class TestErrorResponse:
    """Tests for error response envelope format."""

    def test_error_response_has_correct_shape(self):
        """Error response contains error object with code and message."""
        response = error_response(ApiErrorCode.E_NOT_FOUND, "Resource not found")

        assert response["error"]["code"] == "E_NOT_FOUND"
        assert response["error"]["message"] == "Resource not found"

    def test_error_response_includes_explicit_request_id(self):
        response = error_response(ApiErrorCode.E_FORBIDDEN, "Access denied", request_id="req-1")

        assert response["error"]["request_id"] == "req-1"

    def test_error_response_code_is_string(self):
        """Error code in response is a string, not enum."""
        response = error_response(ApiErrorCode.E_FORBIDDEN, "Access denied")

        assert type(response["error"]["code"]) is str


class TestErrorCodeToStatus:
    """Tests for error code to HTTP status mapping."""

    def test_all_error_codes_have_status_mapping(self):
        """Every ApiErrorCode has a corresponding HTTP status."""
        for code in ApiErrorCode:
            assert code in ERROR_CODE_TO_STATUS, f"Missing status mapping for {code}"

    @pytest.mark.parametrize(
        "code,expected_status",
        [
            (ApiErrorCode.E_UNAUTHENTICATED, 401),
            (ApiErrorCode.E_INVALID_CREDENTIALS, 401),
            (ApiErrorCode.E_FORBIDDEN, 403),
            (ApiErrorCode.E_NOT_FOUND, 404),
            (ApiErrorCode.E_TRACK_NOT_FOUND, 404),
            (ApiErrorCode.E_GRANT_NOT_FOUND, 404),
            (ApiErrorCode.E_GRANT_EXISTS, 409),
            (ApiErrorCode.E_LOGIN_TAKEN, 409),
            (ApiErrorCode.E_INVALID_REQUEST, 400),
            (ApiErrorCode.E_INVALID_ORDER_BY, 400),
            (ApiErrorCode.E_INVALID_DURATION, 400),
            (ApiErrorCode.E_GRANTEE_NOT_FOUND, 400),
            (ApiErrorCode.E_FILE_TOO_LARGE, 400),
            (ApiErrorCode.E_INTERNAL, 500),
            (ApiErrorCode.E_STORAGE_ERROR, 500),
        ],
    )
    def test_error_code_maps_to_correct_status(self, code: ApiErrorCode, expected_status: int):
        """Each error code maps to the expected HTTP status."""
        assert ERROR_CODE_TO_STATUS[code] == expected_status


class TestApiErrorClass:
    """Tests for ApiError exception class."""

    def test_api_error_has_code_and_message(self):
        error = ApiError(ApiErrorCode.E_TRACK_NOT_FOUND, "Track not found")

        assert error.code == ApiErrorCode.E_TRACK_NOT_FOUND
        assert error.message == "Track not found"
        assert error.status_code == 404

    @pytest.mark.parametrize(
        "error,code,status",
        [
            (UnauthenticatedError(), ApiErrorCode.E_UNAUTHENTICATED, 401),
            (NotFoundError(), ApiErrorCode.E_NOT_FOUND, 404),
            (ForbiddenError(), ApiErrorCode.E_FORBIDDEN, 403),
            (InvalidRequestError(), ApiErrorCode.E_INVALID_REQUEST, 400),
            (ConflictError(ApiErrorCode.E_GRANT_EXISTS), ApiErrorCode.E_GRANT_EXISTS, 409),
        ],
    )
    def test_subclass_defaults(self, error: ApiError, code: ApiErrorCode, status: int):
        assert error.code == code
        assert error.status_code == status


class TestHandlersInApp:
    """Error handlers wired by create_app."""

    def test_unknown_route_returns_envelope(self, client: TestClient):
        response = client.get("/nope")

        # Unknown paths are not public, so auth answers first
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"

    def test_unknown_route_when_authenticated(self, client: TestClient, login_as, db_session):
        headers = login_as(create_test_user(db_session))

        response = client.get("/nope", headers=headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_NOT_FOUND"

    def test_wrong_method_returns_envelope(self, client: TestClient):
        response = client.post("/health")

        assert response.status_code == 405
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"


class TestUnhandledExceptionHandling:
    """Tests for unhandled exception and database failure handling."""

    def _crashing_app(self, exc: Exception) -> FastAPI:
        test_app = FastAPI()

        @test_app.get("/crash")
        def crash():
            raise exc

        test_app.add_exception_handler(OperationalError, store_error_handler)
        test_app.add_exception_handler(Exception, unhandled_exception_handler)
        return test_app

    def test_unhandled_exception_returns_500_with_e_internal(self):
        """Unhandled exceptions return 500 with E_INTERNAL code."""
        client = TestClient(
            self._crashing_app(RuntimeError("secret detail")), raise_server_exceptions=False
        )

        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "E_INTERNAL"
        assert "secret detail" not in response.text

    def test_database_failure_is_opaque(self):
        """Driver errors are logged, never returned to the client."""
        exc = OperationalError("SELECT 1", {}, Exception("connection refused on db-host"))
        client = TestClient(self._crashing_app(exc), raise_server_exceptions=False)

        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "E_INTERNAL"
        assert "db-host" not in response.text
