"""Alembic environment for the splitledger schema.

The database URL comes from ``Settings`` (``DATABASE_URL`` or ``.env``) and
can be overridden per run with ``alembic -x database_url=... upgrade head``.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from splitledger.core.settings import get_settings
from splitledger.db.base import Base, import_orm_models

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

import_orm_models()
target_metadata = Base.metadata


def _database_url() -> str:
    overrides = context.get_x_argument(as_dictionary=True)
    return overrides.get("database_url") or get_settings().database_url


def _configure(**options: object) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **options)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""

    _configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def run_migrations_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
