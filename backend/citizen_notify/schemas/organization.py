"""
Organization shapes.

`organizationId` is the logical id and the partition key; it never changes
across versions.
"""

from typing import Literal

from pydantic import Field

from citizen_notify.schemas.common import (
    CamelModel,
    NewDocumentFields,
    NonEmptyString,
    RetrievedDocumentFields,
)

ORGANIZATION_MODEL_ID_FIELD = "organizationId"
ORGANIZATION_MODEL_PK_FIELD = "organizationId"


class Organization(CamelModel):
    organization_id: NonEmptyString
    name: NonEmptyString


class NewOrganization(Organization, NewDocumentFields):
    kind: Literal["NewOrganization"] = Field(default="NewOrganization", exclude=True)


class RetrievedOrganization(Organization, RetrievedDocumentFields):
    kind: Literal["RetrievedOrganization"] = Field(
        default="RetrievedOrganization", exclude=True
    )
