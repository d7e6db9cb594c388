"""Alembic environment for the WorkHaven spot store.

PostgreSQL is the migration target; SQLite files are supported through batch
mode so ``ALTER TABLE`` style operations still apply locally.
"""
import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from workhaven.db.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def _database_url() -> str:
    for name in ("TEST_DATABASE_URL", "DATABASE_URL", "WORKHAVEN_SQLITE_URL"):
        value = os.getenv(name)
        if value:
            return value
    return config.get_main_option("sqlalchemy.url")


def _configure_kwargs(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit the migration SQL to the script output without a connection."""
    url = _database_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = _database_url()
    engine = create_engine(url, poolclass=pool.NullPool)
    logger.info("Running migrations against %s", engine.url.render_as_string(hide_password=True))
    with engine.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
