"""
SenderService shapes.

A SenderService records that a service has contacted a citizen. The logical
id is the composite `<recipientFiscalCode>:<serviceId>`, stored in the
`senderServiceId` field; documents are partitioned by recipient so that all
senders of one citizen are read from a single partition.
"""

from datetime import datetime
from typing import Literal

from pydantic import Field, computed_field

from citizen_notify.schemas.common import (
    CamelModel,
    FiscalCode,
    NewDocumentFields,
    NonEmptyString,
    RetrievedDocumentFields,
)

SENDER_SERVICE_MODEL_ID_FIELD = "senderServiceId"
SENDER_SERVICE_MODEL_PK_FIELD = "recipientFiscalCode"


def make_sender_service_id(recipient_fiscal_code: str, service_id: str) -> str:
    return f"{recipient_fiscal_code}:{service_id}"


class SenderService(CamelModel):
    recipient_fiscal_code: FiscalCode
    service_id: NonEmptyString
    last_notification_at: datetime

    @computed_field(alias=SENDER_SERVICE_MODEL_ID_FIELD)
    @property
    def sender_service_id(self) -> str:
        return make_sender_service_id(self.recipient_fiscal_code, self.service_id)


class NewSenderService(SenderService, NewDocumentFields):
    kind: Literal["NewSenderService"] = Field(default="NewSenderService", exclude=True)


class RetrievedSenderService(SenderService, RetrievedDocumentFields):
    kind: Literal["RetrievedSenderService"] = Field(
        default="RetrievedSenderService", exclude=True
    )
