"""User service layer.

Registration, login/logout and the two user directories (all users, and
owners who share tracks).
"""

from sqlalchemy.orm import Session

from audioshare.errors import (
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    UnauthenticatedError,
)
from audioshare.logging import get_logger
from audioshare.schemas.users import (
    RegisteredOut,
    SharerListOut,
    SharerOut,
    UserListOut,
    UserOut,
)
from audioshare.services.paging import normalize_page
from audioshare.stores import catalog, sessions, users
from audioshare.stores.errors import DuplicateLogin

logger = get_logger(__name__)

MAX_LOGIN_LENGTH = 255


def register(db: Session, login: str, password: str, name: str | None = None) -> RegisteredOut:
    """Register a new user.

    Raises:
        InvalidRequestError: Empty or overlong login, or empty password.
        ConflictError: E_LOGIN_TAKEN if the login is already registered.
    """
    login = login.strip()
    if not login or len(login) > MAX_LOGIN_LENGTH:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, f"Login must be 1-{MAX_LOGIN_LENGTH} characters"
        )
    if not password:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Password must not be empty")

    try:
        user_id = users.create_user(db, login, password, (name or "").strip())
    except DuplicateLogin:
        raise ConflictError(ApiErrorCode.E_LOGIN_TAKEN, "Login already registered") from None

    return RegisteredOut(id=user_id)


def login(db: Session, login: str, password: str) -> str:
    """Check credentials and open a session, replacing any previous one.

    Returns:
        The new session token.

    Raises:
        UnauthenticatedError: E_INVALID_CREDENTIALS on unknown login or bad password.
    """
    user_id = users.authenticate(db, login.strip(), password)
    if user_id is None:
        logger.info("login_failed")
        raise UnauthenticatedError(ApiErrorCode.E_INVALID_CREDENTIALS, "Invalid login or password")

    token = sessions.create_session(db, user_id)
    logger.info("login_succeeded", user_id=user_id)
    return token


def logout(db: Session, token: str | None) -> None:
    """End the session the token belongs to. Unknown tokens are ignored."""
    if not token:
        return
    user_id = sessions.resolve_session(db, token)
    if user_id is None:
        return
    sessions.destroy_session(db, user_id)
    logger.info("logout", user_id=user_id)


def resolve_viewer(db: Session, token: str) -> int | None:
    """Map a session token to its user id (None if no live session)."""
    return sessions.resolve_session(db, token)


def list_users(
    db: Session, *, page_no: str | None, on_page: str | None, default_page_size: int
) -> UserListOut:
    """Page through all registered users.

    Raises:
        NotFoundError: The requested page is empty.
    """
    offset, limit = normalize_page(page_no, on_page, default_page_size)
    rows = users.list_users(db, offset, limit)
    if not rows:
        raise NotFoundError(ApiErrorCode.E_NOT_FOUND, "No users found")
    return UserListOut(
        users=[UserOut(id=user_id, login=login, name=name) for user_id, login, name in rows]
    )


def list_sharers(
    db: Session, *, page_no: str | None, on_page: str | None, default_page_size: int
) -> SharerListOut:
    """Page through owners that share at least one track.

    Raises:
        NotFoundError: The requested page is empty.
    """
    offset, limit = normalize_page(page_no, on_page, default_page_size)
    total_count = catalog.count_sharers(db)
    sharers = catalog.list_sharers(db, offset, limit) if total_count else []
    if not sharers:
        raise NotFoundError(ApiErrorCode.E_NOT_FOUND, "No shared tracks found")
    return SharerListOut(
        total_count=total_count,
        users=[
            SharerOut(id=s.user_id, name=s.name, shared_records=s.shared_records)
            for s in sharers
        ],
    )
