"""
Citizen Notify — Database Engine & Session Management
=====================================================

What:  Async SQLAlchemy engine, session factory and schema bootstrap for the
       SQL-backed document store.
How:   One engine (and its connection pool) per process, shared read-only by
       every model; each store call opens its own short-lived session.
Who:   Used by `bootstrap.build_models()` and by the Alembic environment.

Connection Pooling Strategy:
    pool_size / max_overflow from settings for server databases.
    SQLite URLs get SQLAlchemy's default pool (sizing arguments do not apply).
    pool_pre_ping:     validates connections before use
    pool_recycle=3600: recycles connections every hour
"""

import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from citizen_notify.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, read by `init_schema()` and by Alembic.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def create_engine(config: Settings = default_settings) -> AsyncEngine:
    """
    Build the async engine for `config.database_url`.

    SQLite does not accept pool sizing arguments, so they are only passed
    for server databases.
    """
    kwargs = {
        "pool_pre_ping": config.db_pool_pre_ping,
        "echo": config.db_echo,
    }
    if not config.is_sqlite:
        kwargs.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_recycle=3600,
        )
    return create_async_engine(config.database_url, **kwargs)


# ── Session Factory ───────────────────────────────────────────────────────
def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Each store operation gets its own AsyncSession from this factory.

    expire_on_commit=False keeps row attributes readable after commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_schema(engine: AsyncEngine, config: Settings = default_settings) -> None:
    """
    Create the document table if it does not exist.

    Retried with exponential backoff and jitter while the database refuses
    connections (e.g. a container that is still starting). Other errors, and
    the last connection error once attempts are exhausted, propagate.
    """
    # Registers DocumentRow on Base.metadata
    from citizen_notify.store import row  # noqa: F401

    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type((OperationalError, ConnectionError, OSError)),
        stop=stop_after_attempt(config.startup_retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=config.startup_retry_min_wait,
            max=config.startup_retry_max_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

    logger.info("Document schema ready on %s", engine.url.render_as_string(hide_password=True))


async def dispose_engine(engine: AsyncEngine) -> None:
    """Gracefully closes all connections in the pool (call on shutdown)."""
    await engine.dispose()


def include_name(name, type_, parent_names) -> bool:
    """
    Alembic autogenerate filter: only tables declared on Base.metadata.

    The documents table may live next to other services' tables, which
    autogenerate would otherwise offer to drop.
    """
    if type_ == "table":
        return name in Base.metadata.tables
    return True
