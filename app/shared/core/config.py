from functools import lru_cache
from threading import Lock
from typing import List, Optional

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.shared.core.credentials import AWSAccount

# Environment Constants
ENV_PRODUCTION = "production"
ENV_STAGING = "staging"
ENV_DEVELOPMENT = "development"
ENV_LOCAL = "local"

# STS AssumeRole accepts 15 minutes up to 12 hours.
MIN_ASSUME_ROLE_DURATION_SECONDS = 900
MAX_ASSUME_ROLE_DURATION_SECONDS = 43200


@lru_cache
def get_settings() -> "Settings":
    """Returns a singleton instance of the application settings."""
    return Settings()


_settings_reload_lock = Lock()


def reload_settings_from_environment() -> "Settings":
    """
    Atomically rebuild and replace cached settings from environment values.

    This avoids mutating the cached singleton instance in-place.
    """
    logger = structlog.get_logger()
    with _settings_reload_lock:
        get_settings.cache_clear()
        refreshed = get_settings()
        logger.info("settings_reload_completed")
        return refreshed


class Settings(BaseSettings):
    """
    Main configuration for the AWS inventory service.
    Uses Pydantic-Settings for environment variable parsing from .env.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )

    APP_NAME: str = "AWS Inventory"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    # ENVIRONMENT options: local, development, staging, production
    ENVIRONMENT: str = ENV_DEVELOPMENT
    TESTING: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_INSECURE: bool = False
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    # Accounts: inline JSON list and/or a YAML file shaped as `aws: {accounts: [...]}`
    AWS_ACCOUNTS: List[AWSAccount] = Field(default_factory=list)
    AWS_ACCOUNTS_FILE: Optional[str] = None

    # Optional endpoint override for every AWS client (LocalStack, moto server)
    AWS_ENDPOINT_URL: Optional[str] = None

    AWS_CREDENTIAL_REFRESH_MARGIN_SECONDS: int = 60
    AWS_ASSUME_ROLE_DURATION_SECONDS: int = 3600
    AWS_ROLE_SESSION_PREFIX: str = "aws-inventory"

    # Width of concurrent enrichment batches
    AWS_ENRICHMENT_BATCH_SIZE: int = 5

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in {ENV_PRODUCTION, ENV_STAGING}

    @model_validator(mode="after")
    def validate_inventory_settings(self) -> "Settings":
        if self.AWS_ENRICHMENT_BATCH_SIZE < 1:
            raise ValueError("AWS_ENRICHMENT_BATCH_SIZE must be >= 1")
        if self.AWS_CREDENTIAL_REFRESH_MARGIN_SECONDS < 0:
            raise ValueError("AWS_CREDENTIAL_REFRESH_MARGIN_SECONDS must be >= 0")
        if not (
            MIN_ASSUME_ROLE_DURATION_SECONDS
            <= self.AWS_ASSUME_ROLE_DURATION_SECONDS
            <= MAX_ASSUME_ROLE_DURATION_SECONDS
        ):
            raise ValueError(
                "AWS_ASSUME_ROLE_DURATION_SECONDS must be between "
                f"{MIN_ASSUME_ROLE_DURATION_SECONDS} and {MAX_ASSUME_ROLE_DURATION_SECONDS}"
            )
        if (
            self.AWS_CREDENTIAL_REFRESH_MARGIN_SECONDS
            >= self.AWS_ASSUME_ROLE_DURATION_SECONDS
        ):
            raise ValueError(
                "AWS_CREDENTIAL_REFRESH_MARGIN_SECONDS must be shorter than the session duration"
            )
        if self.TESTING and self.is_production:
            raise ValueError("TESTING cannot be enabled in staging/production")
        return self
