"""Controllers for session and database CLI commands."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from cellory_ops.auth.errors import is_recoverable_auth_error
from cellory_ops.auth.safe import safe_session_lookup
from cellory_ops.auth.sessions import SessionRepository
from cellory_ops.config import Settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionShowCommand:
    """CLI input for session lookup."""

    database_url: str | None
    token: str


@dataclass(slots=True)
class DbCheckCommand:
    """CLI input for database connectivity check."""

    database_url: str | None


@dataclass(slots=True)
class DbCheckResult:
    success: bool
    lines: list[str]


class AuthCliController:
    """Session lookups and database checks for operators."""

    def show_session(self, command: SessionShowCommand) -> list[str]:
        settings = Settings.from_env(database_url=command.database_url)
        settings.validate_for_sessions()
        with _session_repository(settings) as repository:
            view = safe_session_lookup(
                repository,
                command.token,
                diagnostics_enabled=settings.diagnostics_enabled,
            )
        if view is None:
            return ["unauthenticated"]
        return [
            f"user_id: {view.user_id}",
            f"email: {view.user_email}",
            f"name: {view.user_name or '-'}",
            f"expires_at: {view.expires_at.isoformat()}",
        ]

    def check_database(self, command: DbCheckCommand) -> DbCheckResult:
        settings = Settings.from_env(database_url=command.database_url)
        settings.validate_for_sessions()
        lines = ["Checking database connection..."]
        with _session_repository(settings) as repository:
            try:
                repository.ping()
                counts = repository.counts()
            except SQLAlchemyError as error:
                logger.debug("Database check failed", exc_info=True)
                lines.append(f"Database check failed: {error}")
                if is_recoverable_auth_error(error):
                    lines.extend(
                        [
                            "The database may be suspended, unreachable or not migrated yet.",
                            "Retry in a few seconds, then run `cellory-ops migrate deploy`.",
                        ],
                    )
                return DbCheckResult(success=False, lines=lines)

        lines.append(f"sessions table: {counts['sessions']} sessions")
        lines.append(f"users table: {counts['users']} users")
        lines.append("Database connection is working.")
        return DbCheckResult(success=True, lines=lines)


@contextmanager
def _session_repository(settings: Settings) -> Iterator[SessionRepository]:
    repository = SessionRepository(
        settings.database_url,
        max_age=timedelta(seconds=settings.session.max_age_seconds),
        update_age=timedelta(seconds=settings.session.update_age_seconds),
    )
    try:
        yield repository
    finally:
        repository.close()
