"""Utilities to run Alembic migrations in process or as a child process."""

from __future__ import annotations

import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

from cellory_ops.migrations.command import ExternalCommand


def resolve_root_dir() -> Path:
    return Path(__file__).resolve().parents[3]


def resolve_alembic_ini() -> Path:
    return resolve_root_dir() / "alembic.ini"


def build_config(database_url: str) -> Config:
    root_dir = resolve_root_dir()
    config = Config(str(root_dir / "alembic.ini"))
    config.set_main_option("script_location", str(root_dir / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def upgrade_head(database_url: str) -> None:
    """Apply Alembic migrations up to head for the given database."""

    command.upgrade(build_config(database_url), "head")


def default_migrate_args() -> tuple[str, ...]:
    return (
        sys.executable,
        "-m",
        "alembic",
        "-c",
        str(resolve_alembic_ini()),
        "upgrade",
        "head",
    )


def build_migrate_command(*, database_url: str, template: str | None = None) -> ExternalCommand:
    """External `upgrade head` step; the child reads the URL from the environment."""

    env = {"CELLORY_DATABASE_URL": database_url}
    if template:
        return ExternalCommand.from_template(template, env=env)
    return ExternalCommand(args=default_migrate_args(), env=env)
