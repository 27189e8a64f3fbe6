"""Alembic environment for the CreatorCompass schema.

The database URL is always CREATORCOMPASS_DATABASE_URL (via settings);
alembic.ini only carries logging config. Autogenerate diffs
creatorcompass.db.models against the live schema.

    alembic upgrade head
    alembic revision --autogenerate -m "add column"
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from creatorcompass.config import settings
from creatorcompass.db.models import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

DATABASE_URL = settings.database_url

_common_options = {
    "target_metadata": Base.metadata,
    "compare_type": True,
    # SQLite can't ALTER most things in place; batch mode rebuilds the table
    "render_as_batch": DATABASE_URL.startswith("sqlite"),
}


def run_offline() -> None:
    """Emit SQL to stdout instead of executing it (alembic upgrade --sql)."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_common_options,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_common_options)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
