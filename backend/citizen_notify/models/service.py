"""
Service model.

A Service is keyed and partitioned by `serviceId` (the API subscription id).
"""

from typing import Optional

from citizen_notify.exceptions import StoreError
from citizen_notify.models.keyed_lock import KeyedLock
from citizen_notify.models.versioned_model import (
    VersionedEntityModel,
    VersionedModel,
    VersionedModelSpec,
)
from citizen_notify.results import Result
from citizen_notify.schemas.service import (
    SERVICE_MODEL_ID_FIELD,
    SERVICE_MODEL_PK_FIELD,
    NewService,
    RetrievedService,
    Service,
)
from citizen_notify.store.base import DocumentStore

SERVICE_COLLECTION_NAME = "services"


def service_spec(collection: str = SERVICE_COLLECTION_NAME) -> VersionedModelSpec:
    return VersionedModelSpec(
        collection=collection,
        base_type=Service,
        new_type=NewService,
        retrieved_type=RetrievedService,
        model_id_field=SERVICE_MODEL_ID_FIELD,
        partition_key_field=SERVICE_MODEL_PK_FIELD,
        get_model_id=lambda s: s.service_id,
        get_partition_key=lambda s: s.service_id,
    )


class ServiceModel(VersionedEntityModel[Service, NewService, RetrievedService]):
    def __init__(
        self,
        store: DocumentStore,
        collection: str = SERVICE_COLLECTION_NAME,
        *,
        timeout: Optional[float] = None,
        lock: Optional[KeyedLock] = None,
    ):
        super().__init__(
            VersionedModel(store, service_spec(collection), timeout=timeout, lock=lock)
        )

    async def find_one_by_service_id(
        self,
        service_id: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[RetrievedService], StoreError]:
        """Latest version of the service, or Success(None)."""
        return await self.versioned.find_last_version_by_model_id(
            service_id, timeout=timeout
        )
