"""Pytest configuration and fixtures for audioshare tests.

Test isolation strategy:
- Every test gets its own database: DATABASE_URL when it is set (PostgreSQL
  in CI), otherwise a SQLite file in the test's tmp_path
- The schema is created from the ORM metadata and all rows are deleted
  after the test
- Settings come from environment variables patched per test; the settings
  and password hasher caches are cleared around every test
- Track content lives in a MemoryBlobStore
"""

import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from audioshare.app import add_request_id_middleware, create_app
from audioshare.auth.passwords import get_password_hasher
from audioshare.config import clear_settings_cache
from audioshare.db.engine import create_db_engine
from audioshare.db.session import create_session_factory
from audioshare.storage.client import MemoryBlobStore
from tests.helpers import auth_headers
from tests.utils.db import TestDatabaseManager


def get_test_database_url(tmp_path: Path) -> str:
    """DATABASE_URL if set, otherwise a throwaway SQLite file."""
    return os.environ.get("DATABASE_URL") or f"sqlite:///{tmp_path / 'audioshare.db'}"


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return get_test_database_url(tmp_path)


@pytest.fixture(autouse=True)
def test_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, database_url: str
) -> Generator[None, None, None]:
    """Point settings at the test database with a cheap password hash profile."""
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.setenv("AUDIOSHARE_ENV", "test")
    monkeypatch.setenv("BLOB_BACKEND", "memory")
    monkeypatch.setenv("MEDIA_DIR", str(tmp_path / "media"))
    monkeypatch.setenv("ARGON2_TIME_COST", "1")
    monkeypatch.setenv("ARGON2_MEMORY_COST", "8")
    monkeypatch.setenv("ARGON2_PARALLELISM", "1")
    monkeypatch.setenv("LOG_JSON", "false")
    clear_settings_cache()
    get_password_hasher.cache_clear()
    yield
    clear_settings_cache()
    get_password_hasher.cache_clear()


@pytest.fixture
def engine(database_url: str) -> Generator[Engine, None, None]:
    """Database engine with the schema in place for one test."""
    engine = create_db_engine(database_url)
    with TestDatabaseManager(engine):
        yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Session for arranging and inspecting data directly.

    Writes made through it must be committed (factories do) before a request
    can see them.
    """
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def app(engine: Engine, blob_store: MemoryBlobStore) -> FastAPI:
    """Fully wired app (auth + request-id middleware) on the test database."""
    app = create_app(session_factory=create_session_factory(engine), blob_store=blob_store)
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def login_as(db_session: Session) -> Callable[[int], dict[str, str]]:
    """Return a function that opens a session for a user id and gives its headers."""

    def _login_as(user_id: int) -> dict[str, str]:
        return auth_headers(db_session, user_id)

    return _login_as
