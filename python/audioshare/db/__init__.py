"""Database module for audioshare.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from audioshare.db.engine import create_db_engine, get_engine
from audioshare.db.models import Base, Grant, Track, User, UserSession
from audioshare.db.session import get_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "transaction",
    # Models
    "Base",
    "User",
    "UserSession",
    "Track",
    "Grant",
]
