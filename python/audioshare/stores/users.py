"""User store: registration, credential check, and the paged user directory."""

import logging

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audioshare.auth.passwords import hash_password, verify_password
from audioshare.db.session import transaction
from audioshare.stores.errors import DuplicateLogin, integrity_kind

logger = logging.getLogger(__name__)


def create_user(db: Session, login: str, password: str, name: str | None = None) -> int:
    """Register a user.

    Args:
        db: Database session.
        login: Unique login.
        password: Plaintext password (stored as an Argon2 hash).
        name: Optional display name; empty means "use the login".

    Returns:
        The new user id.

    Raises:
        DuplicateLogin: If the login is already registered.
    """
    password_hash = hash_password(password)
    try:
        with transaction(db):
            user_id = db.execute(
                text("""
                    INSERT INTO users (login, name, password_hash)
                    VALUES (:login, :name, :password_hash)
                    RETURNING id
                """),
                {"login": login, "name": name or "", "password_hash": password_hash},
            ).scalar_one()
    except IntegrityError as exc:
        if integrity_kind(exc) == "unique":
            raise DuplicateLogin(login) from exc
        raise

    logger.info("user_registered", extra={"user_id": user_id})
    return user_id


def authenticate(db: Session, login: str, password: str) -> int | None:
    """Return the user id when login/password match, else None."""
    row = db.execute(
        text("SELECT id, password_hash FROM users WHERE login = :login"),
        {"login": login},
    ).fetchone()
    if row is None or not verify_password(row[1], password):
        return None
    return row[0]


def list_users(db: Session, offset: int, limit: int) -> list[tuple[int, str, str]]:
    """Page through registered users ordered by id.

    Returns:
        Rows of (id, login, display name).
    """
    result = db.execute(
        text("""
            SELECT id, login, COALESCE(NULLIF(name, ''), login) AS display_name
            FROM users
            ORDER BY id
            LIMIT :limit OFFSET :offset
        """),
        {"offset": offset, "limit": limit},
    )
    return [(row[0], row[1], row[2]) for row in result.fetchall()]
