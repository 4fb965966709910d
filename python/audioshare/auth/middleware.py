"""Authentication middleware for FastAPI.

Provides:
- AuthMiddleware: Global middleware resolving the session token to a viewer
- get_viewer: Dependency for accessing authenticated viewer identity

The session token is read from the session cookie; an
`Authorization: Bearer <token>` header is accepted when no cookie is sent.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from audioshare.errors import ApiError, ApiErrorCode
from audioshare.logging import bind_user_context
from audioshare.responses import error_response

logger = logging.getLogger(__name__)

# Header names
AUTHORIZATION_HEADER = "authorization"

# Paths that don't require authentication
PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/registration",
    "/login",
    "/logout",
}


@dataclass
class Viewer:
    """Authenticated viewer identity.

    Attributes:
        user_id: The viewer's user ID (owner of the session token).
        token: The session token the request authenticated with.
    """

    user_id: int
    token: str


class AuthMiddleware(BaseHTTPMiddleware):
    """Authentication middleware for FastAPI.

    Order of checks:
    1. Skip if public path
    2. Extract token (cookie, then bearer header)
    3. Resolve token to a user via callback
    4. Attach Viewer to request state and the user to the logging context

    Authentication is checked before any route-level validation, so an
    unauthenticated request with bad parameters still gets 401.
    """

    def __init__(
        self,
        app: ASGIApp,
        token_resolver: Callable[[str], int | None],
        cookie_name: str = "session_id",
    ):
        """Initialize the auth middleware.

        Args:
            app: The ASGI application.
            token_resolver: Function(token) -> user_id, or None when the token
                has no live session.
            cookie_name: Name of the cookie carrying the session token.
        """
        super().__init__(app)
        self.token_resolver = token_resolver
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        """Process the request through auth checks."""
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            logger.warning(
                "auth_failure",
                extra={"reason": "missing_token", "request_path": request.url.path},
            )
            return self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED, "Authentication required", 401
            )

        try:
            user_id = self.token_resolver(token)
        except Exception as e:
            logger.exception("Session lookup failed: %s", e)
            return self._error_json_response(ApiErrorCode.E_INTERNAL, "Internal server error", 500)

        if user_id is None:
            logger.warning(
                "auth_failure",
                extra={"reason": "unknown_token", "request_path": request.url.path},
            )
            return self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED, "Authentication required", 401
            )

        request.state.viewer = Viewer(user_id=user_id, token=token)
        bind_user_context(user_id)

        return await call_next(request)

    def _extract_token(self, request: Request) -> str | None:
        """Get the session token from the cookie or the Authorization header."""
        token = request.cookies.get(self.cookie_name)
        if token:
            return token

        auth_header = request.headers.get(AUTHORIZATION_HEADER)
        if auth_header and auth_header.lower().startswith("bearer "):
            return auth_header[7:].strip() or None
        return None

    def _error_json_response(
        self, code: ApiErrorCode, message: str, status_code: int
    ) -> JSONResponse:
        """Create a JSON error response."""
        return JSONResponse(
            status_code=status_code,
            content=error_response(code, message),
        )


def get_viewer(request: Request) -> Viewer:
    """FastAPI dependency to get the authenticated viewer.

    Raises:
        ApiError: If viewer is not set (middleware didn't run or path is public).
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return viewer

