"""
Alembic Migration Environment
=============================

What:  Migrations for the `documents` table, run through the async engine.
How:   The URL is always `settings.database_url`, so migrations and the store
       point at the same database.
When:  `alembic upgrade head` at deploy time; `build_models(init=False)`
       then leaves the schema alone.

The document table may share its database with other services' tables:
autogenerate only compares the tables declared on `Base.metadata`, and
SQLite gets batch mode because it cannot ALTER constraints in place.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from citizen_notify.config import settings
from citizen_notify.database import Base, include_name
from citizen_notify.store.row import DocumentRow  # noqa: F401

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        include_name=include_name,
        compare_type=True,
        render_as_batch=settings.is_sqlite,
        **kwargs,
    )


def migrate_with(connection) -> None:
    configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online() -> None:
    # NullPool: one short-lived connection, nothing to keep around
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(migrate_with)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    # `alembic upgrade --sql`: emit the DDL without connecting
    configure(url=settings.database_url, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(migrate_online())
