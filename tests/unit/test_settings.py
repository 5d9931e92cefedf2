"""Unit tests for config/settings.py."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.settings import Settings, get_settings


class TestResolvedStorePath:
    def test_default_path(self):
        s = Settings(store_path=Path("scanner.db"))
        assert s.resolved_store_path == Path("scanner.db")

    def test_dot_path_resolves_to_default(self):
        s = Settings(store_path=Path("."))
        assert s.resolved_store_path == Path("scanner.db")

    def test_valid_custom_path(self):
        s = Settings(store_path=Path("/data/credits.db"))
        assert s.resolved_store_path == Path("/data/credits.db")


class TestRequestDelay:
    def test_token_uses_fast_delay(self):
        s = Settings()
        assert s.request_delay_seconds("abc") == pytest.approx(1.1)

    def test_no_token_uses_slow_delay(self):
        s = Settings()
        assert s.request_delay_seconds(None) == pytest.approx(3.0)

    def test_blank_token_counts_as_missing(self):
        s = Settings()
        assert s.request_delay_seconds("   ") == pytest.approx(3.0)

    def test_delays_are_configurable(self):
        s = Settings(token_request_delay_ms=500, anonymous_request_delay_ms=2000)
        assert s.request_delay_seconds("abc") == pytest.approx(0.5)
        assert s.request_delay_seconds(None) == pytest.approx(2.0)


class TestScanDefaults:
    def test_defaults(self):
        s = Settings()
        assert s.max_additional_versions == 5
        assert s.main_releases_only is False
        assert s.listing_page_size == 100

    def test_negative_version_budget_rejected(self):
        with pytest.raises(ValidationError):
            Settings(max_additional_versions=-1)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MAIN_RELEASES_ONLY", "true")
        monkeypatch.setenv("MAX_ADDITIONAL_VERSIONS", "2")
        s = Settings()
        assert s.main_releases_only is True
        assert s.max_additional_versions == 2


class TestGetSettings:
    def test_returns_settings_instance(self):
        get_settings.cache_clear()
        s = get_settings()
        assert isinstance(s, Settings)

    def test_caches_result(self):
        get_settings.cache_clear()
        s1 = get_settings()
        s2 = get_settings()
        assert s1 is s2
        get_settings.cache_clear()
