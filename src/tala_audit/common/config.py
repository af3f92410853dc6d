"""Tala-Audit configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "api_key": "insecure-admin-key-change-me",
}


class TalaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TALA_")

    environment: str = "development"

    # Development-only bypass: audit appends return a sentinel id and persist
    # nothing. Refused outside the development environment.
    disable_auth: bool = False

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/tala_audit.db"

    # API
    api_title: str = "Tala-Audit"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Verification
    verify_linkage: bool = True

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 200

    log_level: str = "INFO"

    @property
    def audit_bypass_active(self) -> bool:
        return self.disable_auth and self.environment == "development"

    def validate_for_production(self) -> None:
        """Raise if insecure defaults or the dev bypass are used outside development."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development":
            if self.disable_auth:
                raise RuntimeError(
                    f"TALA_DISABLE_AUTH is a development-only switch and cannot be "
                    f"enabled in the '{self.environment}' environment."
                )
            if insecure_fields:
                env_vars = ", ".join(f"TALA_{f.upper()}" for f in insecure_fields)
                raise RuntimeError(
                    f"Insecure default values detected in '{self.environment}' environment. "
                    f"Set these environment variables to secure values: {env_vars}. "
                    "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
                )

        if insecure_fields:
            warnings.warn(
                "Using insecure default API key; set TALA_API_KEY for production",
                UserWarning,
                stacklevel=2,
            )
        if self.disable_auth:
            warnings.warn(
                "TALA_DISABLE_AUTH is set; audit events will not be persisted",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> TalaSettings:
    settings = TalaSettings()
    settings.validate_for_production()
    return settings
