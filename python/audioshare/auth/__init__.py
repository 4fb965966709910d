"""Authentication module.

This module provides:
- Session-token auth middleware for FastAPI
- Request state with viewer identity
- Argon2 password hashing
"""

from audioshare.auth.middleware import AuthMiddleware, Viewer, get_viewer
from audioshare.auth.passwords import hash_password, verify_password

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "hash_password",
    "verify_password",
]
