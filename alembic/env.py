"""Alembic environment for the Cellory schema."""

from __future__ import annotations

import os

from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

from alembic import context
from cellory_ops.config import DEFAULT_DATABASE_URL
from cellory_ops.storage import sqlmodel_models  # noqa: F401

config = context.config
target_metadata = SQLModel.metadata


def _database_url() -> str:
    # An explicit URL (set by upgrade_head) wins over the environment.
    return config.get_main_option("sqlalchemy.url") or os.getenv(
        "CELLORY_DATABASE_URL",
        DEFAULT_DATABASE_URL,
    )


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
