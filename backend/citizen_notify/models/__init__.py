"""
Citizen Notify — Versioned Models
=================================

`VersionedModel` implements the versioning protocol once; the entity models
compose it and add their own queries.
"""

from citizen_notify.models.keyed_lock import KeyedLock
from citizen_notify.models.organization import OrganizationModel
from citizen_notify.models.profile import ProfileModel
from citizen_notify.models.sender_service import SenderServiceModel
from citizen_notify.models.service import ServiceModel
from citizen_notify.models.versioned_id import (
    generate_versioned_model_id,
    parse_versioned_model_id,
)
from citizen_notify.models.versioned_model import (
    VersionedEntityModel,
    VersionedModel,
    VersionedModelSpec,
)

__all__ = [
    "KeyedLock",
    "OrganizationModel",
    "ProfileModel",
    "SenderServiceModel",
    "ServiceModel",
    "VersionedEntityModel",
    "VersionedModel",
    "VersionedModelSpec",
    "generate_versioned_model_id",
    "parse_versioned_model_id",
]
