"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, auth middleware, request-id middleware, and routes.

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures all requests (including auth failures) get X-Request-ID

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AuthMiddleware (resolves session token, sets viewer)
3. Route handler
4. AuthMiddleware (returns response)
5. RequestIDMiddleware (logs, sets response header)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from audioshare.api.routes import create_api_router
from audioshare.auth.middleware import AuthMiddleware
from audioshare.config import get_settings
from audioshare.db.session import get_session_factory
from audioshare.errors import ApiError, ApiErrorCode
from audioshare.logging import configure_logging, get_logger
from audioshare.middleware.request_id import RequestIDMiddleware
from audioshare.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    store_error_handler,
    unhandled_exception_handler,
)
from audioshare.services.users import resolve_viewer
from audioshare.storage.client import BlobStoreBase, get_blob_store

logger = get_logger(__name__)


def create_session_resolver(session_factory: sessionmaker[Session]):
    """Create a token resolver that opens its own database session.

    The resolver is called by the auth middleware for each non-public request.
    """

    def resolve(token: str) -> int | None:
        db = session_factory()
        try:
            return resolve_viewer(db, token)
        finally:
            db.close()

    return resolve


def create_app(
    skip_auth_middleware: bool = False,
    session_factory: sessionmaker[Session] | None = None,
    blob_store: BlobStoreBase | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        session_factory: Session factory for request sessions and token
            lookups. Defaults to the factory bound to DATABASE_URL.
        blob_store: Track content store. Defaults to the BLOB_BACKEND store.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json)

    app = FastAPI(
        title="Audioshare API",
        description="Owner-controlled sharing of uploaded audio tracks",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if session_factory is None:
        session_factory = get_session_factory()
    if blob_store is None:
        blob_store = get_blob_store(settings)
    app.state.session_factory = session_factory
    app.state.blob_store = blob_store

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle missing or malformed query/form parameters."""
        fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        message = f"Invalid parameter: {', '.join(fields)}" if fields else "Invalid request"
        return JSONResponse(
            status_code=400,
            content=error_response(ApiErrorCode.E_INVALID_REQUEST, message),
        )

    app.include_router(create_api_router())

    if not skip_auth_middleware:
        app.add_middleware(
            AuthMiddleware,
            token_resolver=create_session_resolver(app.state.session_factory),
            cookie_name=settings.session_cookie_name,
        )
        logger.info("auth_middleware_enabled", env=settings.audioshare_env.value)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including auth failures.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
