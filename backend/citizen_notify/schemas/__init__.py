"""
Citizen Notify — Entity Schemas
===============================

Pydantic shapes for the versioned entities. `RetrievedDocument` is the tagged
union of every retrieved shape; narrow it on `kind`.
"""

from typing import Annotated, Union

from pydantic import Field

from citizen_notify.schemas.organization import (
    NewOrganization,
    Organization,
    RetrievedOrganization,
)
from citizen_notify.schemas.profile import NewProfile, Profile, RetrievedProfile
from citizen_notify.schemas.sender_service import (
    NewSenderService,
    RetrievedSenderService,
    SenderService,
)
from citizen_notify.schemas.service import NewService, RetrievedService, Service

RetrievedDocument = Annotated[
    Union[RetrievedProfile, RetrievedOrganization, RetrievedService, RetrievedSenderService],
    Field(discriminator="kind"),
]

__all__ = [
    "NewOrganization",
    "NewProfile",
    "NewSenderService",
    "NewService",
    "Organization",
    "Profile",
    "RetrievedDocument",
    "RetrievedOrganization",
    "RetrievedProfile",
    "RetrievedSenderService",
    "RetrievedService",
    "SenderService",
    "Service",
]
