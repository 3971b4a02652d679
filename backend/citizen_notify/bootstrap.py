"""
Citizen Notify — Model Wiring
=============================

What:  Builds the four entity models over one shared document store.
How:   One engine + session factory per process; the store and, when
       `serialize_updates` is on, one KeyedLock are shared by every model.
Who:   Called once by the process entry point (HTTP app or queue worker).

Usage:
    setup_logging()
    models = await build_models()
    try:
        result = await models.profiles.find_one_profile_by_fiscal_code(fc)
    finally:
        await models.close()
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from citizen_notify.config import Settings, settings as default_settings
from citizen_notify.database import (
    create_engine,
    create_session_factory,
    dispose_engine,
    init_schema,
)
from citizen_notify.models import (
    KeyedLock,
    OrganizationModel,
    ProfileModel,
    SenderServiceModel,
    ServiceModel,
)
from citizen_notify.store import SqlDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class ModelRegistry:
    profiles: ProfileModel
    organizations: OrganizationModel
    services: ServiceModel
    sender_services: SenderServiceModel
    store: SqlDocumentStore
    engine: AsyncEngine

    async def close(self) -> None:
        """Releases the connection pool (call on shutdown)."""
        await dispose_engine(self.engine)
        logger.info("Document store connections closed")


async def build_models(
    config: Settings = default_settings,
    *,
    init: bool = True,
) -> ModelRegistry:
    """
    Build the models for `config`.

    With `init` the documents table is created if missing (retried while
    the database is unreachable); pass init=False when Alembic owns the
    schema.
    """
    engine = create_engine(config)
    if init:
        try:
            await init_schema(engine, config)
        except Exception:
            await dispose_engine(engine)
            raise

    store = SqlDocumentStore(
        create_session_factory(engine),
        database_name=config.documentdb_database_name,
        default_timeout=config.store_timeout_seconds,
        page_size=config.query_page_size,
    )
    lock = KeyedLock() if config.serialize_updates else None

    registry = ModelRegistry(
        profiles=ProfileModel(store, config.profiles_collection_name, lock=lock),
        organizations=OrganizationModel(store, config.organizations_collection_name, lock=lock),
        services=ServiceModel(store, config.services_collection_name, lock=lock),
        sender_services=SenderServiceModel(
            store, config.sender_services_collection_name, lock=lock
        ),
        store=store,
        engine=engine,
    )
    logger.info(
        "Models ready (serialize_updates=%s, timeout=%ss)",
        config.serialize_updates, config.store_timeout_seconds,
    )
    return registry
