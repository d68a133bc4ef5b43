"""Runtime configuration for migration deploys and session lookups."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from cellory_ops.resilience.models import RetryConfig

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///.cellory.db"
DEFAULT_MIGRATE_MAX_ATTEMPTS = 5
DEFAULT_MIGRATE_RETRY_DELAY_MS = 4_000
DEFAULT_SESSION_MAX_AGE_SECONDS = 30 * 24 * 60 * 60
DEFAULT_SESSION_UPDATE_AGE_SECONDS = 24 * 60 * 60
DEVELOPMENT_ENVIRONMENT = "development"


@dataclass(slots=True)
class MigrateSettings:
    """Retry budget and command for `migrate deploy`."""

    max_attempts: int = DEFAULT_MIGRATE_MAX_ATTEMPTS
    retry_delay_ms: int = DEFAULT_MIGRATE_RETRY_DELAY_MS
    command: str | None = None

    def retry_config(self) -> RetryConfig:
        return RetryConfig.from_milliseconds(
            max_attempts=self.max_attempts,
            base_delay_ms=self.retry_delay_ms,
        )


@dataclass(slots=True)
class SessionSettings:
    """Database session lifetime settings."""

    max_age_seconds: int = DEFAULT_SESSION_MAX_AGE_SECONDS
    update_age_seconds: int = DEFAULT_SESSION_UPDATE_AGE_SECONDS


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    database_url: str = DEFAULT_DATABASE_URL
    environment: str = "production"
    migrate: MigrateSettings = field(default_factory=MigrateSettings)
    session: SessionSettings = field(default_factory=SessionSettings)

    @property
    def diagnostics_enabled(self) -> bool:
        """Recoverable-error diagnostics are only logged in development."""

        return self.environment.strip().lower() == DEVELOPMENT_ENVIRONMENT

    @classmethod
    def from_env(cls, database_url: str | None = None) -> Settings:
        """Load settings from environment with defaults for local development."""

        return cls(
            database_url=database_url or os.getenv("CELLORY_DATABASE_URL", DEFAULT_DATABASE_URL),
            environment=os.getenv("CELLORY_ENV", "production"),
            migrate=MigrateSettings(
                max_attempts=clamp_max_attempts(
                    _env_int_or_default(
                        "CELLORY_MIGRATE_MAX_ATTEMPTS",
                        DEFAULT_MIGRATE_MAX_ATTEMPTS,
                    ),
                ),
                retry_delay_ms=clamp_retry_delay_ms(
                    _env_int_or_default(
                        "CELLORY_MIGRATE_RETRY_DELAY_MS",
                        DEFAULT_MIGRATE_RETRY_DELAY_MS,
                    ),
                ),
                command=os.getenv("CELLORY_MIGRATE_COMMAND", "").strip() or None,
            ),
            session=SessionSettings(
                max_age_seconds=_env_int_or_default(
                    "CELLORY_SESSION_MAX_AGE_SECONDS",
                    DEFAULT_SESSION_MAX_AGE_SECONDS,
                ),
                update_age_seconds=_env_int_or_default(
                    "CELLORY_SESSION_UPDATE_AGE_SECONDS",
                    DEFAULT_SESSION_UPDATE_AGE_SECONDS,
                ),
            ),
        )

    def validate_for_sessions(self) -> None:
        """Raise configuration error if session lifetimes are unusable."""

        if self.session.max_age_seconds <= 0:
            raise ValueError("CELLORY_SESSION_MAX_AGE_SECONDS must be > 0.")
        if self.session.update_age_seconds <= 0:
            raise ValueError("CELLORY_SESSION_UPDATE_AGE_SECONDS must be > 0.")
        if self.session.update_age_seconds > self.session.max_age_seconds:
            raise ValueError(
                "CELLORY_SESSION_UPDATE_AGE_SECONDS must not exceed "
                "CELLORY_SESSION_MAX_AGE_SECONDS.",
            )


def clamp_max_attempts(value: int) -> int:
    if value < 1:
        logger.warning("Migrate max attempts %d is below 1, using 1.", value)
        return 1
    return value


def clamp_retry_delay_ms(value: int) -> int:
    # Zero or negative would turn the retry loop into a busy loop.
    if value <= 0:
        logger.warning(
            "Migrate retry delay %dms is not positive, using %dms.",
            value,
            DEFAULT_MIGRATE_RETRY_DELAY_MS,
        )
        return DEFAULT_MIGRATE_RETRY_DELAY_MS
    return value


def _env_int_or_default(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %d.", name, raw, default)
        return default
