"""Tests for application configuration (blob backend and listing settings)."""

import pytest
from pydantic import ValidationError

from audioshare.config import BlobBackend, Environment, Settings


def _make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {
        "DATABASE_URL": "sqlite:///audioshare.db",
        "AUDIOSHARE_ENV": "test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


class TestDefaults:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("BLOB_BACKEND", raising=False)
        monkeypatch.delenv("LOG_JSON", raising=False)

        s = _make_settings()

        assert s.audioshare_env == Environment.TEST
        assert s.blob_backend == BlobBackend.LOCAL
        assert s.default_page_size == 10
        assert s.session_cookie_name == "session_id"
        assert s.max_upload_bytes == 50 * 1024 * 1024
        assert s.log_json is True

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            _make_settings(DEFAULT_PAGE_SIZE=0)


class TestBlobBackendValidation:
    def test_supabase_requires_url_and_key(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_KEY", raising=False)

        with pytest.raises(ValidationError, match="SUPABASE_URL, SUPABASE_SERVICE_KEY"):
            _make_settings(BLOB_BACKEND="supabase")

    def test_supabase_with_credentials(self):
        s = _make_settings(
            BLOB_BACKEND="supabase",
            SUPABASE_URL="http://localhost:54321",
            SUPABASE_SERVICE_KEY="key",
        )

        assert s.blob_backend == BlobBackend.SUPABASE
        assert s.storage_bucket == "media"

    @pytest.mark.parametrize("env", ["staging", "prod"])
    def test_memory_backend_refused_outside_dev(self, env: str):
        with pytest.raises(ValidationError, match="BLOB_BACKEND=memory"):
            _make_settings(AUDIOSHARE_ENV=env, BLOB_BACKEND="memory")

    def test_memory_backend_allowed_in_test(self):
        assert _make_settings(BLOB_BACKEND="memory").blob_backend == BlobBackend.MEMORY

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(BLOB_BACKEND="ftp")
