"""Controller for the `migrate deploy` CLI command."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from cellory_ops.config import Settings, clamp_max_attempts, clamp_retry_delay_ms
from cellory_ops.migrations.alembic_runner import build_migrate_command
from cellory_ops.resilience.models import AttemptOutcome
from cellory_ops.resilience.supervisor import RetrySupervisor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MigrateDeployCommand:
    """CLI input for a supervised migration deploy."""

    database_url: str | None
    max_attempts: int | None
    retry_delay_ms: int | None
    command: str | None


@dataclass(slots=True)
class MigrateDeployResult:
    """Final status and the attempts it took to get there."""

    exit_status: int
    attempts: int
    lines: list[str]

    @property
    def success(self) -> bool:
        return self.exit_status == 0


class MigrationCliController:
    """Resolve settings and run the migration step under a RetrySupervisor."""

    def __init__(
        self,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._sleep = sleep

    def deploy(self, command: MigrateDeployCommand) -> MigrateDeployResult:
        settings = Settings.from_env(database_url=command.database_url)
        migrate = settings.migrate
        if command.max_attempts is not None:
            migrate.max_attempts = clamp_max_attempts(command.max_attempts)
        if command.retry_delay_ms is not None:
            migrate.retry_delay_ms = clamp_retry_delay_ms(command.retry_delay_ms)
        if command.command is not None:
            migrate.command = command.command

        action = build_migrate_command(
            database_url=settings.database_url,
            template=migrate.command,
        )
        config = migrate.retry_config()
        outcomes: list[AttemptOutcome] = []
        supervisor = RetrySupervisor(
            label="migrate",
            sleep=self._sleep,
            on_attempt=outcomes.append,
        )

        logger.info(
            "Running %s (max attempts %d, base delay %dms)",
            action.display,
            config.max_attempts,
            migrate.retry_delay_ms,
        )
        exit_status = supervisor.run(action, config)

        if exit_status == 0:
            lines = [f"Migrations applied after {len(outcomes)} attempt(s)."]
        else:
            lines = [
                f"Migrations failed after {len(outcomes)} attempt(s) "
                f"with exit status {exit_status}.",
            ]
        return MigrateDeployResult(exit_status=exit_status, attempts=len(outcomes), lines=lines)
