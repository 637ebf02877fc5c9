"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Cache settings (version tag, TTLs) are fixed at process
start; invalid or unparseable values fall back to defaults instead of
failing startup.
"""

import logging
from functools import lru_cache
from typing import Any

from pydantic import SecretStr, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.constants import (
    DEFAULT_CACHE_KEY_PREFIX,
    DEFAULT_CACHE_VERSION,
    DEFAULT_CACHE_TTL,
    DEFAULT_PROPERTY_STORE_KEY,
    MAX_CACHE_TTL,
    ROLE_CONFIG_TTL,
    ROLE_HISTORY_LIMIT,
    SESSION_DURATION_SECONDS,
    SHEET_DATA_TTL,
    USER_DATA_TTL,
)

logger = logging.getLogger(__name__)

_TTL_DEFAULTS: dict[str, int] = {
    "cache_default_ttl": DEFAULT_CACHE_TTL,
    "cache_max_ttl": MAX_CACHE_TTL,
    "user_data_ttl": USER_DATA_TTL,
    "sheet_data_ttl": SHEET_DATA_TTL,
    "role_config_ttl": ROLE_CONFIG_TTL,
    "session_duration_seconds": SESSION_DURATION_SECONDS,
}

_INT_DEFAULTS: dict[str, int] = {**_TTL_DEFAULTS, "role_history_limit": ROLE_HISTORY_LIMIT}


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Nothing here is required: a missing, unparseable or non-positive cache
    version, TTL or limit is replaced by its hardcoded default.
    """

    # App
    app_name: str = "observation-portal"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str | None = None

    # Redis: KV cache (keys under cache_key_prefix) and durable property hash
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    cache_key_prefix: str = DEFAULT_CACHE_KEY_PREFIX
    property_store_key: str = DEFAULT_PROPERTY_STORE_KEY

    # Cache versioning and TTLs (seconds)
    cache_version: str = DEFAULT_CACHE_VERSION
    cache_default_ttl: int = DEFAULT_CACHE_TTL
    cache_max_ttl: int = MAX_CACHE_TTL
    user_data_ttl: int = USER_DATA_TTL
    sheet_data_ttl: int = SHEET_DATA_TTL
    role_config_ttl: int = ROLE_CONFIG_TTL

    # Data source: "memory" (empty, seeded by callers) or "csv" (one <sheet>.csv per sheet)
    data_source_backend: str = "memory"
    data_source_root: str = "./data"

    # State tracking and sessions
    role_history_limit: int = ROLE_HISTORY_LIMIT
    session_duration_seconds: int = SESSION_DURATION_SECONDS

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator(*_INT_DEFAULTS, mode="before")
    @classmethod
    def recover_unparseable_int(cls, value: Any, info: ValidationInfo) -> Any:
        """Replace a value that is not an integer with the field default."""
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            default = _INT_DEFAULTS[info.field_name]
            logger.warning(
                "%s is not an integer (%r); using default %s",
                info.field_name.upper(),
                value,
                default,
            )
            return default

    @model_validator(mode="after")
    def recover_cache_defaults(self) -> "Settings":
        """Replace unusable cache settings with defaults (logged, never raised)."""
        if not self.cache_version.strip():
            logger.warning(
                "CACHE_VERSION is empty; using default %s", DEFAULT_CACHE_VERSION
            )
            self.cache_version = DEFAULT_CACHE_VERSION
        for name, default in _TTL_DEFAULTS.items():
            if getattr(self, name) <= 0:
                logger.warning(
                    "%s must be positive, got %s; using default %s",
                    name.upper(),
                    getattr(self, name),
                    default,
                )
                setattr(self, name, default)
        if self.cache_default_ttl > self.cache_max_ttl:
            self.cache_default_ttl = self.cache_max_ttl
        if self.role_history_limit <= 0:
            self.role_history_limit = ROLE_HISTORY_LIMIT
        if not self.cache_key_prefix or self.property_store_key.startswith(self.cache_key_prefix):
            logger.warning(
                "Property hash %r would be cleared with cache prefix %r; using defaults",
                self.property_store_key,
                self.cache_key_prefix,
            )
            self.cache_key_prefix = DEFAULT_CACHE_KEY_PREFIX
            self.property_store_key = DEFAULT_PROPERTY_STORE_KEY
        if self.data_source_backend not in ("memory", "csv"):
            logger.warning(
                "Unknown data_source_backend %r; using 'memory'",
                self.data_source_backend,
            )
            self.data_source_backend = "memory"
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    In tests, call get_settings.cache_clear() before overriding env vars so
    the next get_settings() uses the new values.

    Returns:
        Loaded Settings instance.
    """
    return Settings()
