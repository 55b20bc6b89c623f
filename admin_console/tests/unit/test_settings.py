"""
Unit tests for configuration loading.
"""

import pytest

from admin_console.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Test cases for Settings."""

    def test_defaults(self, monkeypatch):
        for name in ("PAGE_SIZE", "STORE_BACKEND", "LATEST_WINDOW_HOURS", "SUBMISSIONS_COLLECTION"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.page_size == 8
        assert settings.latest_window_hours == 24
        assert settings.submissions_collection == "submissions"
        assert settings.store_backend == "firestore"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PAGE_SIZE", "20")
        monkeypatch.setenv("store_backend", "memory")
        monkeypatch.setenv("FETCH_MAX_RETRIES", "0")

        settings = get_settings()

        assert settings.page_size == 20
        assert settings.store_backend == "memory"
        assert settings.fetch_max_retries == 0

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_rejects_invalid_page_size(self, monkeypatch):
        monkeypatch.setenv("PAGE_SIZE", "0")
        with pytest.raises(ValueError):
            Settings()
