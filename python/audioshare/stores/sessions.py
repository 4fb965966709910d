"""Session token store.

One live token per user. Creating a session for a user who already has one
replaces the token in a single upsert statement, so the previous token stops
resolving at the same instant the new one starts.

Tokens are 32 lowercase hex characters from the OS CSPRNG and never expire
on their own; they end on logout or when superseded by a newer login.
"""

import secrets

from sqlalchemy import text
from sqlalchemy.orm import Session

from audioshare.db.session import transaction

TOKEN_BYTES = 16


def generate_token() -> str:
    """Return a fresh 32-hex-character session token."""
    return secrets.token_hex(TOKEN_BYTES)


def create_session(db: Session, user_id: int) -> str:
    """Create (or replace) the session for a user.

    Returns:
        The new token.
    """
    token = generate_token()
    with transaction(db):
        db.execute(
            text("""
                INSERT INTO sessions (user_id, token)
                VALUES (:user_id, :token)
                ON CONFLICT (user_id) DO UPDATE
                SET token = excluded.token, created_at = CURRENT_TIMESTAMP
            """),
            {"user_id": user_id, "token": token},
        )
    return token


def resolve_session(db: Session, token: str) -> int | None:
    """Return the user owning `token`, or None if no live session matches."""
    return db.execute(
        text("SELECT user_id FROM sessions WHERE token = :token"),
        {"token": token},
    ).scalar()


def destroy_session(db: Session, user_id: int) -> None:
    """End the user's session. No-op when there is none."""
    with transaction(db):
        db.execute(
            text("DELETE FROM sessions WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
