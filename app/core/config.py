"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationAppError


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class RelaySettings(BaseSettings):
    """Destination and authentication settings for the relay.

    Both the destination URL and the webhook secret are required for the
    service to start. They are optional here so that importing this module
    never fails; ``ensure_startup_config`` enforces them.
    """

    destination_url: str | None = Field(
        None,
        description="Private URL that verified webhooks are forwarded to",
    )
    webhook_secret: SecretStr | None = Field(
        None,
        description="Shared secret used to verify X-Hub-Signature-256",
    )
    timeout_seconds: float = Field(
        15.0,
        description="Timeout for the outbound request to the destination",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    name: str = Field(
        "Webhook Relay",
        description="Service name reported on the root endpoint",
    )
    version: str = Field(
        "1.0.0",
        description="Service version reported on the root endpoint",
    )
    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_body_size_mb: int = Field(
        10,
        description="Maximum inbound webhook body size in megabytes",
        ge=1,
    )
    trust_forwarded_for: bool = Field(
        False,
        description="Use the first X-Forwarded-For address as client address (behind a proxy)",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable fixed-window rate limiting per client address",
    )
    rate_limit_requests: int = Field(
        30,
        description="Maximum number of requests allowed per window (per client address)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: float = Field(
        60.0,
        description="How often expired rate limit entries are removed",
        gt=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def max_body_bytes(self) -> int:
        return self.max_body_size_mb * 1024 * 1024


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class ServerSettings(BaseSettings):
    """Listener configuration (HOST and PORT, unprefixed)."""

    host: str = Field("0.0.0.0", description="Interface to bind")
    port: int = Field(3000, description="Port to listen on", ge=1, le=65535)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


def _build_relay_settings() -> RelaySettings:
    """Build relay settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    Static type checkers don't know that, hence the factory functions.
    """

    return RelaySettings()


def _build_app_settings() -> AppSettings:
    return AppSettings()


def _build_log_settings() -> LogSettings:
    return LogSettings()


def _build_server_settings() -> ServerSettings:
    return ServerSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    relay: RelaySettings = Field(default_factory=_build_relay_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    server: ServerSettings = Field(default_factory=_build_server_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


def load_settings() -> Settings:
    """Read settings from the environment.

    Raises:
        ConfigurationAppError: If a value is present but cannot be parsed.
    """
    try:
        return Settings()
    except ValidationError as exc:
        fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
        raise ConfigurationAppError(
            code="invalid_configuration",
            message="Invalid configuration values: " + ", ".join(fields),
            details={"context": {"fields": fields}},
        ) from exc


def ensure_startup_config(cfg: Settings) -> None:
    """Fail fast when the relay cannot run safely.

    The relay requires both a destination and a webhook secret; unsigned
    forwarding is not supported.

    Args:
        cfg: Settings to check.

    Raises:
        ConfigurationAppError: Listing every missing or invalid variable.
    """
    problems: list[str] = []

    destination = (cfg.relay.destination_url or "").strip()
    if not destination:
        problems.append("RELAY_DESTINATION_URL is required")
    elif not destination.lower().startswith(("http://", "https://")):
        problems.append("RELAY_DESTINATION_URL must be an http(s) URL")

    secret = cfg.relay.webhook_secret
    if secret is None or not secret.get_secret_value():
        problems.append("RELAY_WEBHOOK_SECRET is required")

    if problems:
        raise ConfigurationAppError(
            code="invalid_configuration",
            message="; ".join(problems),
            details={"hint": "Set the missing variables in the environment or .env file"},
        )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = load_settings()
