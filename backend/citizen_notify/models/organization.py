"""
Organization model.

Organizations are keyed and partitioned by `organizationId`, which never
changes across versions.
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
from citizen_notify.schemas.organization import (
    ORGANIZATION_MODEL_ID_FIELD,
    ORGANIZATION_MODEL_PK_FIELD,
    NewOrganization,
    Organization,
    RetrievedOrganization,
)
from citizen_notify.store.base import DocumentStore

ORGANIZATION_COLLECTION_NAME = "organizations"


def organization_spec(collection: str = ORGANIZATION_COLLECTION_NAME) -> VersionedModelSpec:
    return VersionedModelSpec(
        collection=collection,
        base_type=Organization,
        new_type=NewOrganization,
        retrieved_type=RetrievedOrganization,
        model_id_field=ORGANIZATION_MODEL_ID_FIELD,
        partition_key_field=ORGANIZATION_MODEL_PK_FIELD,
        get_model_id=lambda o: o.organization_id,
        get_partition_key=lambda o: o.organization_id,
    )


class OrganizationModel(
    VersionedEntityModel[Organization, NewOrganization, RetrievedOrganization]
):
    def __init__(
        self,
        store: DocumentStore,
        collection: str = ORGANIZATION_COLLECTION_NAME,
        *,
        timeout: Optional[float] = None,
        lock: Optional[KeyedLock] = None,
    ):
        super().__init__(
            VersionedModel(store, organization_spec(collection), timeout=timeout, lock=lock)
        )

    async def find_last_version_by_id(
        self,
        organization_id: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[RetrievedOrganization], StoreError]:
        return await self.versioned.find_last_version_by_model_id(
            organization_id, timeout=timeout
        )

    async def update_organization(
        self,
        organization: RetrievedOrganization,
        *,
        timeout: Optional[float] = None,
    ) -> Result[RetrievedOrganization, StoreError]:
        """
        Writes `organization` (as read, possibly edited with model_copy) as the
        version after it. Id and partition both come from organizationId.

        If another writer already created that version the result is
        Failure(ConflictError); read the latest version and retry if needed.
        """
        return await self.versioned.create_version(
            self.to_base(organization),
            organization.version + 1,
            organization.organization_id,
            timeout=timeout,
        )
