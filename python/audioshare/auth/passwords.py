"""Password hashing with Argon2id.

The hasher is built once from settings; cost parameters are tunable per
environment (tests run with a cheap profile).
"""

from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from audioshare.config import get_settings


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Return the process-wide PasswordHasher configured from settings."""
    settings = get_settings()
    return PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
        hash_len=32,
        salt_len=16,
    )


def hash_password(password: str) -> str:
    """Hash a plaintext password for storage."""
    return get_password_hasher().hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """Check a plaintext password against a stored hash.

    Malformed stored hashes count as a mismatch.
    """
    try:
        return get_password_hasher().verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False
