"""Server configuration loaded from the environment.

Variables are read from the process environment and, when present, a
``.env`` file in the working directory. Values already set in the
environment win over the file.
"""

from __future__ import annotations

import logging
import os
from typing import Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.cache import DEFAULT_TTL_SECONDS
from .core.errors import ConfigurationError
from .core.rate_limiter import DEFAULT_RATE_LIMIT

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"

LogLevel = Literal["debug", "info", "warning", "error", "critical"]


class Settings(BaseSettings):
    """Runtime settings for the Semrush MCP server."""

    semrush_api_key: Optional[str] = Field(None, validation_alias="SEMRUSH_API_KEY")
    api_cache_ttl_seconds: int = Field(DEFAULT_TTL_SECONDS, gt=0, validation_alias="API_CACHE_TTL_SECONDS")
    api_rate_limit_per_second: int = Field(DEFAULT_RATE_LIMIT, gt=0, validation_alias="API_RATE_LIMIT_PER_SECOND")
    environment: str = Field("development", validation_alias="ENVIRONMENT")
    port: int = Field(3000, validation_alias="PORT")
    log_level: LogLevel = Field("info", validation_alias="LOG_LEVEL")
    transport: Literal["stdio", "sse", "streamable-http"] = Field("stdio", validation_alias="MCP_TRANSPORT")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


def load_settings(dotenv_path: Optional[str] = DEFAULT_ENV_FILE) -> Settings:
    """Build ``Settings`` from the environment plus ``dotenv_path`` (``None`` skips the file)."""
    if dotenv_path and os.path.isfile(dotenv_path):
        logger.info("Loading environment variables from %s", dotenv_path)
    try:
        return Settings(_env_file=dotenv_path)
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]).upper() for err in exc.errors() if err["loc"])
        raise ConfigurationError(f"Invalid configuration value(s): {fields}") from exc


def validate_settings(settings: Settings) -> bool:
    """Warn about settings that will make every API call fail."""
    if not settings.semrush_api_key:
        logger.warning("Missing SEMRUSH_API_KEY. API calls will fail without it.")
        return False
    return True


def log_config_status(settings: Settings) -> None:
    validate_settings(settings)
    logger.info("Configuration loaded:")
    logger.info("  Environment: %s", settings.environment)
    logger.info("  API Key: %s", "[PROVIDED]" if settings.semrush_api_key else "[MISSING]")
    logger.info("  Cache TTL: %d seconds", settings.api_cache_ttl_seconds)
    logger.info("  Rate Limit: %d requests per second", settings.api_rate_limit_per_second)
    logger.info("  Log Level: %s", settings.log_level)
