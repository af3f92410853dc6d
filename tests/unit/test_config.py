"""Tests for settings validation and the development bypass gate."""

import pytest

from tala_audit.common.config import TalaSettings

INSECURE_KEY = "insecure-admin-key-change-me"


class TestValidateForProduction:
    def test_development_defaults_warn(self):
        settings = TalaSettings(environment="development", api_key=INSECURE_KEY)
        with pytest.warns(UserWarning, match="TALA_API_KEY"):
            settings.validate_for_production()

    def test_production_insecure_key_rejected(self):
        settings = TalaSettings(environment="production", api_key=INSECURE_KEY)
        with pytest.raises(RuntimeError, match="TALA_API_KEY"):
            settings.validate_for_production()

    def test_production_with_bypass_rejected(self):
        settings = TalaSettings(
            environment="production", api_key="a-real-secret", disable_auth=True,
        )
        with pytest.raises(RuntimeError, match="TALA_DISABLE_AUTH"):
            settings.validate_for_production()

    def test_production_secure(self):
        settings = TalaSettings(environment="production", api_key="a-real-secret")
        settings.validate_for_production()
        assert settings.audit_bypass_active is False

    def test_development_bypass_warns(self):
        settings = TalaSettings(api_key="a-real-secret", disable_auth=True)
        with pytest.warns(UserWarning, match="TALA_DISABLE_AUTH"):
            settings.validate_for_production()
        assert settings.audit_bypass_active is True


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TALA_VERIFY_LINKAGE", "false")
        monkeypatch.setenv("TALA_DB_URL", "sqlite+aiosqlite:///tmp/x.db")
        settings = TalaSettings()
        assert settings.verify_linkage is False
        assert settings.db_url == "sqlite+aiosqlite:///tmp/x.db"

    def test_bypass_needs_development(self):
        settings = TalaSettings(environment="staging", disable_auth=True)
        assert settings.audit_bypass_active is False
