"""
Citizen Notify — SenderService Model
====================================

What:  Records which services have sent messages to a citizen.
How:   Logical id `<recipientFiscalCode>:<serviceId>` (field
       `senderServiceId`), partitioned by `recipientFiscalCode`. Every new
       notification from a service writes the next version with a fresh
       `lastNotificationAt`.
Who:   Written by the created-message handler; read by the "visible
       services" listing of a citizen.

Listing a recipient's senders reads one partition ordered by
(serviceId ASC, version DESC) and keeps the first row of each serviceId, so
the result holds one item per service (its latest version) and is never
buffered beyond the current page.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from citizen_notify.exceptions import StoreError, ValidationError
from citizen_notify.models.keyed_lock import KeyedLock
from citizen_notify.models.versioned_model import (
    VersionedEntityModel,
    VersionedModel,
    VersionedModelSpec,
)
from citizen_notify.results import Failure, Result
from citizen_notify.schemas.sender_service import (
    SENDER_SERVICE_MODEL_ID_FIELD,
    SENDER_SERVICE_MODEL_PK_FIELD,
    NewSenderService,
    RetrievedSenderService,
    SenderService,
)
from citizen_notify.store.base import DocumentQuery, DocumentStore, ResultIterator

logger = logging.getLogger(__name__)

SENDER_SERVICE_COLLECTION_NAME = "sender-services"


def sender_service_spec(
    collection: str = SENDER_SERVICE_COLLECTION_NAME,
) -> VersionedModelSpec:
    return VersionedModelSpec(
        collection=collection,
        base_type=SenderService,
        new_type=NewSenderService,
        retrieved_type=RetrievedSenderService,
        model_id_field=SENDER_SERVICE_MODEL_ID_FIELD,
        partition_key_field=SENDER_SERVICE_MODEL_PK_FIELD,
        get_model_id=lambda s: s.sender_service_id,
        get_partition_key=lambda s: s.recipient_fiscal_code,
    )


class SenderServiceModel(
    VersionedEntityModel[SenderService, NewSenderService, RetrievedSenderService]
):
    def __init__(
        self,
        store: DocumentStore,
        collection: str = SENDER_SERVICE_COLLECTION_NAME,
        *,
        timeout: Optional[float] = None,
        lock: Optional[KeyedLock] = None,
    ):
        super().__init__(
            VersionedModel(store, sender_service_spec(collection), timeout=timeout, lock=lock)
        )

    async def find_sender_services_for_recipient(
        self,
        recipient_fiscal_code: str,
        *,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ResultIterator[RetrievedSenderService]:
        """
        Lazily yields, for each service that contacted the recipient, the
        latest version of its SenderService record.

        Malformed documents are yielded as Failure and skipped over; a store
        failure, or a page not fetched within `timeout` (default: the
        model's), is yielded once and ends the iteration.
        """
        query = DocumentQuery(
            filters=((SENDER_SERVICE_MODEL_PK_FIELD, "@fiscalCode"),),
            parameters={"@fiscalCode": recipient_fiscal_code},
            order_by=(("serviceId", False), ("version", True)),
        )
        last_service_id = None
        async for item in self.versioned.query(
            query, recipient_fiscal_code, page_size=page_size, timeout=timeout
        ):
            if isinstance(item, Failure):
                yield item
                continue
            if item.value.service_id == last_service_id:
                continue
            last_service_id = item.value.service_id
            yield item

    async def upsert_sender_service(
        self,
        recipient_fiscal_code: str,
        service_id: str,
        notified_at: Optional[datetime] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Result[RetrievedSenderService, StoreError]:
        """
        Records a notification from `service_id` to the recipient as the
        next version of their SenderService (version 0 the first time).
        """
        try:
            sender_service = SenderService(
                recipient_fiscal_code=recipient_fiscal_code,
                service_id=service_id,
                last_notification_at=notified_at or datetime.now(timezone.utc),
            )
        except PydanticValidationError as e:
            return Failure(
                ValidationError(
                    "Invalid sender service",
                    context={"errors": e.errors(include_url=False)},
                )
            )
        result = await self.versioned.upsert(sender_service, timeout=timeout)
        if isinstance(result, Failure):
            logger.warning(
                "Could not record sender service %s: %s",
                sender_service.sender_service_id, result.error.message,
            )
        return result
