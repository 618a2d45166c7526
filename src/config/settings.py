# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: object storage,
the remote parsing service and its credentials, the callback address,
ledger retention and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Object storage ===
    storage_backend: Literal["local", "s3"] = "local"
    storage_local_root: Path = Path("~/.docparse/objects")
    storage_bucket: str = ""
    storage_prefix: str = "docparse/"
    storage_region: str = ""
    storage_endpoint_url: str = ""
    storage_uri_scheme: str = "oss"
    storage_signed_url_ttl: int = 3600

    # === Remote parsing service ===
    parse_base_url: str = "http://localhost"
    parse_app_id: str = "demo-app-id"
    parse_secret_key: str = "demo-secret-key"
    # Additional identifier -> secret pairs accepted on inbound callbacks
    # (JSON mapping in the environment).
    parse_extra_credentials: dict[str, str] = {}
    parse_request_valid_seconds: int = 300
    status_query_valid_ms: int = 300_000
    parse_timeout_s: float = 30.0
    status_timeout_s: float = 10.0

    # === Callback ===
    callback_base_url: str = "http://localhost:3001"
    callback_path: str = "/api/callback/document"
    callback_verify_credential: bool = True

    # === Client request signing ===
    client_signature_valid_seconds: int = 3600

    # === Ledger ===
    ledger_retention_hours: int = 24

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("parse_timeout_s", "status_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Timeouts must be strictly positive."""
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("callback_path")
    @classmethod
    def validate_callback_path(cls, v: str) -> str:
        if v and not v.startswith("/"):
            return "/" + v
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.storage_backend == "s3" and not self.storage_bucket:
            errors.append("STORAGE_BUCKET must be set when STORAGE_BACKEND=s3")

        if not self.parse_app_id or not self.parse_secret_key:
            errors.append("PARSE_APP_ID and PARSE_SECRET_KEY are required")

        if self.parse_app_id in self.parse_extra_credentials:
            errors.append(
                "PARSE_EXTRA_CREDENTIALS must not redefine PARSE_APP_ID"
            )

        if self.parse_request_valid_seconds <= 0 or self.status_query_valid_ms <= 0:
            errors.append("Request validity windows must be positive")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def callback_url(self) -> str:
        """Absolute callback address handed to the parsing service."""
        return f"{self.callback_base_url.rstrip('/')}{self.callback_path}"

    @property
    def credentials(self) -> dict[str, str]:
        """Ordered identifier -> secret mapping, primary credential first."""
        creds = {self.parse_app_id: self.parse_secret_key}
        creds.update(self.parse_extra_credentials)
        return creds


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
