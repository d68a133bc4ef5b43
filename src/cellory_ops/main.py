"""CLI entrypoint for cellory-ops."""

import logging

import rich_click as click

from cellory_ops import __version__
from cellory_ops.auth.controllers import AuthCliController, DbCheckCommand, SessionShowCommand
from cellory_ops.migrations.controllers import MigrateDeployCommand, MigrationCliController

click.rich_click.USE_MARKDOWN = True
MIGRATION_CONTROLLER = MigrationCliController()
AUTH_CONTROLLER = AuthCliController()
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.version_option(version=__version__, prog_name="cellory-ops")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging level for diagnostics written to stderr.",
)
def cellory_ops(log_level: str) -> None:
    """Cellory operational tooling."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cellory_ops.group()
def migrate() -> None:
    """Schema migration commands."""


@migrate.command("deploy")
@click.option("--database-url", default=None, help="Database URL (CELLORY_DATABASE_URL).")
@click.option(
    "--max-attempts",
    type=int,
    default=None,
    help="Total attempts before giving up. Defaults to CELLORY_MIGRATE_MAX_ATTEMPTS or 5.",
)
@click.option(
    "--retry-delay-ms",
    type=int,
    default=None,
    help=(
        "Base backoff delay; attempt N waits N times this value. "
        "Defaults to CELLORY_MIGRATE_RETRY_DELAY_MS or 4000."
    ),
)
@click.option(
    "--command",
    "command_template",
    default=None,
    help=(
        "Migration command to supervise instead of `alembic upgrade head`. "
        "If omitted, CELLORY_MIGRATE_COMMAND is used."
    ),
)
@click.pass_context
def migrate_deploy(
    ctx: click.Context,
    database_url: str | None,
    max_attempts: int | None,
    retry_delay_ms: int | None,
    command_template: str | None,
) -> None:
    """Apply migrations, retrying failed attempts with linear backoff.

    Exits with the status of the last attempt.
    """

    if command_template is not None and not command_template.strip():
        raise click.BadParameter("must not be empty.", param_hint="--command")
    try:
        result = MIGRATION_CONTROLLER.deploy(
            MigrateDeployCommand(
                database_url=database_url,
                max_attempts=max_attempts,
                retry_delay_ms=retry_delay_ms,
                command=command_template,
            ),
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines, err=not result.success)
    ctx.exit(result.exit_status)


@cellory_ops.group()
def session() -> None:
    """Session commands."""


@session.command("show")
@click.argument("token")
@click.option("--database-url", default=None, help="Database URL (CELLORY_DATABASE_URL).")
def session_show(token: str, database_url: str | None) -> None:
    """Resolve a session token; prints `unauthenticated` when it cannot be resolved."""

    try:
        lines = AUTH_CONTROLLER.show_session(
            SessionShowCommand(database_url=database_url, token=token),
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@cellory_ops.group()
def db() -> None:
    """Database commands."""


@db.command("check")
@click.option("--database-url", default=None, help="Database URL (CELLORY_DATABASE_URL).")
def db_check(database_url: str | None) -> None:
    """Check database connectivity and table counts."""

    try:
        result = AUTH_CONTROLLER.check_database(DbCheckCommand(database_url=database_url))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Database check failed.")


def _emit_lines(lines: list[str], *, err: bool = False) -> None:
    for line in lines:
        click.echo(line, err=err)


if __name__ == "__main__":  # pragma: no cover
    cellory_ops()
