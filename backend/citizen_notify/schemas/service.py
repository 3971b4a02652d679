"""
Service shapes.

A Service is tied to an API subscription; `serviceId` equals the
subscription id and is both logical id and partition key.
"""

from typing import FrozenSet, List, Literal

from pydantic import Field, field_serializer, field_validator

from citizen_notify.schemas.common import (
    CamelModel,
    NewDocumentFields,
    NonEmptyString,
    RetrievedDocumentFields,
    is_fiscal_code,
)

SERVICE_MODEL_ID_FIELD = "serviceId"
SERVICE_MODEL_PK_FIELD = "serviceId"


class Service(CamelModel):
    service_id: NonEmptyString
    service_name: NonEmptyString
    organization_name: NonEmptyString
    department_name: NonEmptyString
    # fiscal codes allowed to receive messages while the service is in test
    authorized_recipients: FrozenSet[str] = frozenset()
    authorized_cidrs: List[str] = Field(default_factory=list, alias="authorizedCIDRs")

    @field_validator("authorized_recipients", mode="before")
    @classmethod
    def keep_valid_fiscal_codes(cls, v):
        """
        Accepts a list (as read from the store) or a set (as built in code)
        and silently drops entries that are not fiscal codes.
        """
        return frozenset(code for code in (v or ()) if is_fiscal_code(code))

    @field_serializer("authorized_recipients")
    def serialize_recipients(self, recipients: FrozenSet[str]) -> List[str]:
        return sorted(recipients)


class NewService(Service, NewDocumentFields):
    kind: Literal["NewService"] = Field(default="NewService", exclude=True)


class RetrievedService(Service, RetrievedDocumentFields):
    kind: Literal["RetrievedService"] = Field(default="RetrievedService", exclude=True)
