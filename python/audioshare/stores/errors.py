"""Store-level failure categories.

Stores raise these instead of API errors; the service layer decides which
HTTP-facing code each one becomes. Driver detail stays on the exception
(`__cause__`) for the server log.
"""

from sqlalchemy.exc import IntegrityError

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class StoreError(Exception):
    """Base class for store failures."""


class RecordNotFound(StoreError):
    """The addressed row does not exist."""


class NoVisibleRecords(RecordNotFound):
    """The requested listing page holds no records visible to the requester."""


class AccessDenied(StoreError):
    """The requester fails the visibility predicate for a record."""


class ConstraintViolation(StoreError):
    """A referential constraint rejected the write (e.g. unknown grantee)."""


class DuplicateGrant(ConstraintViolation):
    """The (record, grantee) pair is already granted."""


class DuplicateLogin(ConstraintViolation):
    """The login is already registered."""


def integrity_kind(exc: IntegrityError) -> str | None:
    """Classify an IntegrityError as 'unique' or 'foreign_key'.

    Uses the driver SQLSTATE when available (psycopg exposes `sqlstate`,
    psycopg2 `pgcode`), otherwise falls back to the message text, which is
    how SQLite reports constraint failures.

    Returns:
        "unique", "foreign_key", or None for anything else.
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION:
        return "unique"
    if sqlstate == FOREIGN_KEY_VIOLATION:
        return "foreign_key"

    msg = str(orig if orig is not None else exc).lower()
    if "foreign key" in msg:
        return "foreign_key"
    if "unique" in msg or "duplicate key" in msg:
        return "unique"
    return None
