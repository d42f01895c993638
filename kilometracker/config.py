"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kilometracker.exceptions import ConfigurationError

_LOCAL_HOSTNAMES = frozenset({"localhost", "127.0.0.1", "::1"})


class Settings(BaseSettings):
    """Kilometracker edge settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    environment: str = "development"
    debug: bool = False
    expose_docs: bool = False

    # Backend API
    api_base_url: str = "http://localhost:4000"
    backend_timeout_seconds: float | None = Field(default=None, gt=0)

    # Paths
    frontend_dir: Path = Path("./frontend/dist")

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    # Session
    session_cookie_name: str = "token"
    session_max_age_seconds: int = Field(default=24 * 60 * 60, ge=1)

    # Response hardening
    security_headers_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    def validate_runtime(self) -> None:
        """Validate settings that must hold before serving requests."""
        parsed = urlparse(self.api_base_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            msg = f"API_BASE_URL must be an absolute http(s) URL, got {self.api_base_url!r}"
            raise ConfigurationError(msg)

        if (
            self.is_production
            and parsed.scheme != "https"
            and parsed.hostname not in _LOCAL_HOSTNAMES
        ):
            msg = "API_BASE_URL must use https in production for non-local backends"
            raise ConfigurationError(msg)
