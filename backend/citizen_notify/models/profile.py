"""
Citizen Notify — Profile Model
==============================

What:  Versioned persistence of citizen profiles.
How:   The fiscal code is both logical id and partition key, so every
       version of a profile lives in one partition and the latest one is a
       single-partition query.
Who:   Used by the profile API and by the message queue handlers, which read
       the current profile to decide where to deliver.
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
from citizen_notify.schemas.profile import (
    PROFILE_MODEL_ID_FIELD,
    PROFILE_MODEL_PK_FIELD,
    NewProfile,
    Profile,
    RetrievedProfile,
)
from citizen_notify.store.base import DocumentStore

PROFILE_COLLECTION_NAME = "profiles"


def profile_spec(collection: str = PROFILE_COLLECTION_NAME) -> VersionedModelSpec:
    return VersionedModelSpec(
        collection=collection,
        base_type=Profile,
        new_type=NewProfile,
        retrieved_type=RetrievedProfile,
        model_id_field=PROFILE_MODEL_ID_FIELD,
        partition_key_field=PROFILE_MODEL_PK_FIELD,
        get_model_id=lambda p: p.fiscal_code,
        get_partition_key=lambda p: p.fiscal_code,
    )


class ProfileModel(VersionedEntityModel[Profile, NewProfile, RetrievedProfile]):
    def __init__(
        self,
        store: DocumentStore,
        collection: str = PROFILE_COLLECTION_NAME,
        *,
        timeout: Optional[float] = None,
        lock: Optional[KeyedLock] = None,
    ):
        super().__init__(
            VersionedModel(store, profile_spec(collection), timeout=timeout, lock=lock)
        )

    async def find_one_profile_by_fiscal_code(
        self,
        fiscal_code: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[RetrievedProfile], StoreError]:
        """The current profile of a citizen, or Success(None) if they have none."""
        return await self.versioned.find_last_version_by_model_id(
            fiscal_code, timeout=timeout
        )
