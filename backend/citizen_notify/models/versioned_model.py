"""
Citizen Notify — Generic Versioned Document Model
=================================================

What:  Optimistic, append-only versioning on top of a DocumentStore.
How:   Every write creates a new immutable document whose id is
       `<logicalId>-<16-digit version>`. "Update" reads version N, applies
       a caller function and creates version N+1. The latest version of an
       entity is found by querying its logical id ordered by version DESC.
Who:   Composed (not subclassed) by ProfileModel, OrganizationModel,
       ServiceModel and SenderServiceModel, each supplying a
       VersionedModelSpec with its shapes and id fields.

Version chain of one logical entity:

    absent ──create──▶ v0 ──update──▶ v1 ──update──▶ … ──▶ vN

    Transitions only move forward; older versions stay readable.

Failure semantics (every operation):
    Success(record)   the operation produced / found a record
    Success(None)     nothing there (find / update of a missing id)
    Failure(error)    StoreError from the store, or ValidationError for
                      input rejected before any store call

Concurrency:
    update() is read-then-write and not atomic. Two updates starting from
    the same version both try to create the same physical id; the store
    accepts one and returns ConflictError to the other. Nothing is retried.
    With `lock` set, update/upsert for one partition are serialized in this
    process, so concurrent upserts land as N+1 and N+2. An update naming a
    stale physical id still conflicts: that is the optimistic check.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import (
    AsyncIterator,
    Callable,
    Generic,
    Optional,
    Type,
    TypeVar,
)

from pydantic import ValidationError as PydanticValidationError

from citizen_notify.exceptions import StoreError, StoreTimeoutError, ValidationError
from citizen_notify.models.keyed_lock import KeyedLock
from citizen_notify.models.versioned_id import generate_versioned_model_id
from citizen_notify.results import Failure, Result, Success
from citizen_notify.schemas.common import (
    CamelModel,
    NewDocumentFields,
    RetrievedDocumentFields,
)
from citizen_notify.store.base import DocumentQuery, DocumentStore, ResultIterator

logger = logging.getLogger(__name__)

B = TypeVar("B", bound=CamelModel)
N = TypeVar("N", bound=NewDocumentFields)
R = TypeVar("R", bound=RetrievedDocumentFields)

INITIAL_VERSION = 0


@dataclass(frozen=True)
class VersionedModelSpec(Generic[B, N, R]):
    """
    Everything that differs between entity kinds.

    model_id_field / partition_key_field are stored (camelCase) field names;
    they are the same field for most entities.
    """

    collection: str
    base_type: Type[B]
    new_type: Type[N]
    retrieved_type: Type[R]
    model_id_field: str
    partition_key_field: str
    get_model_id: Callable[[B], str]
    get_partition_key: Callable[[B], str]


class VersionedModel(Generic[B, N, R]):
    """
    Generic create / find / update / upsert / query over versioned documents.

    Args:
        store:    the shared document store
        spec:     shapes and id fields of one entity kind
        timeout:  default deadline in seconds for each operation
        lock:     optional KeyedLock serializing update/upsert per partition
    """

    def __init__(
        self,
        store: DocumentStore,
        spec: VersionedModelSpec[B, N, R],
        *,
        timeout: Optional[float] = None,
        lock: Optional[KeyedLock] = None,
    ):
        self.store = store
        self.spec = spec
        self._timeout = timeout
        self._lock = lock

    @property
    def collection(self) -> str:
        return self.spec.collection

    # ── Shape conversions ─────────────────────────────────────────────────
    def to_base(self, document: CamelModel) -> B:
        """Drops id, version and store metadata (and the discriminant)."""
        return self.spec.base_type.model_validate(document.model_dump(by_alias=True))

    def hydrate(self, raw: dict) -> Result[R, StoreError]:
        """Raw store document → tagged retrieved shape."""
        try:
            return Success(self.spec.retrieved_type.model_validate(raw))
        except PydanticValidationError as e:
            logger.error(
                "Malformed %s document %s: %s",
                self.collection, raw.get("id"), e.errors(include_url=False),
            )
            return Failure(
                StoreError(
                    message=f"Stored {self.collection} document is malformed",
                    code=StoreError.MALFORMED,
                    context={"collection": self.collection, "document_id": raw.get("id")},
                )
            )

    def versionate(self, document: B, version: int) -> N:
        """
        Builds the new-document shape for `version` of `document`.

        Raises ValidationError when the logical id or version is invalid.
        """
        model_id = self.spec.get_model_id(document)
        versioned_id = generate_versioned_model_id(model_id, version)
        try:
            return self.spec.new_type.model_validate(
                {**document.model_dump(by_alias=True), "id": versioned_id, "version": version}
            )
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid {self.collection} document",
                context={"errors": e.errors(include_url=False)},
            ) from e

    # ── Operations ────────────────────────────────────────────────────────
    async def create(
        self,
        document: B,
        partition_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Result[R, StoreError]:
        """
        Writes version 0 of a new logical entity.

        The partition key defaults to the entity's own partition field.
        A version 0 that already exists comes back as Failure(ConflictError).
        """
        return await self.create_version(
            document, INITIAL_VERSION, partition_key, timeout=timeout
        )

    async def create_version(
        self,
        document: B,
        version: int,
        partition_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Result[R, StoreError]:
        """Writes `document` as exactly `version`, without reading first."""
        try:
            new_document = self.versionate(document, version)
        except ValidationError as e:
            return Failure(e)
        pk = partition_key if partition_key is not None else self.spec.get_partition_key(document)
        return await self._write(new_document, pk, timeout)

    async def find(
        self,
        document_id: str,
        partition_key: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[R], StoreError]:
        """Point-read of one physical document; absence is Success(None)."""
        result = await self.store.read_document(
            self.collection, document_id, partition_key, timeout=self._deadline(timeout)
        )
        if isinstance(result, Failure):
            if result.error.is_not_found:
                return Success(None)
            return result
        return self.hydrate(result.value)

    async def update(
        self,
        document_id: str,
        partition_key: str,
        mutate: Callable[[R], B],
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[R], StoreError]:
        """
        Creates the version after `document_id` from `mutate(current)`.

        Returns Success(None) without writing when `document_id` does not
        exist. The logical id must not change across versions.
        """
        async with self._serialized(partition_key):
            found = await self.find(document_id, partition_key, timeout=timeout)
            if isinstance(found, Failure) or found.value is None:
                return found
            current = found.value

            try:
                updated = self.to_base(mutate(current))
            except PydanticValidationError as e:
                return Failure(
                    ValidationError(
                        f"Updated {self.collection} document is invalid",
                        context={"errors": e.errors(include_url=False)},
                    )
                )

            model_id = self.spec.get_model_id(current)
            if self.spec.get_model_id(updated) != model_id:
                return Failure(
                    ValidationError(
                        f"The {self.spec.model_id_field} of a document cannot change",
                        field=self.spec.model_id_field,
                    )
                )

            try:
                new_document = self.versionate(updated, current.version + 1)
            except ValidationError as e:
                return Failure(e)

            written = await self._write(new_document, partition_key, timeout)
            if isinstance(written, Success):
                logger.info(
                    "Updated %s %s to version %d",
                    self.collection, model_id, new_document.version,
                )
            return written

    async def upsert(
        self,
        document: B,
        *,
        timeout: Optional[float] = None,
    ) -> Result[R, StoreError]:
        """
        Writes `document` as the next version of its logical entity:
        version 0 when none exists, latest + 1 otherwise.
        """
        partition_key = self.spec.get_partition_key(document)
        async with self._serialized(partition_key):
            latest = await self.find_last_version_by_model_id(
                self.spec.get_model_id(document),
                partition_key,
                timeout=timeout,
            )
            if isinstance(latest, Failure):
                return latest

            version = INITIAL_VERSION if latest.value is None else latest.value.version + 1
            return await self.create_version(
                document, version, partition_key, timeout=timeout
            )

    async def find_last_version_by_model_id(
        self,
        model_id: str,
        partition_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[R], StoreError]:
        """
        The latest version of a logical entity, or Success(None).

        Pass the partition key when it differs from the model id, to keep the
        query inside a single partition.
        """
        filters = [(self.spec.model_id_field, "@modelId")]
        parameters = {"@modelId": model_id}
        if partition_key is not None and self.spec.partition_key_field != self.spec.model_id_field:
            filters.append((self.spec.partition_key_field, "@partitionKey"))
            parameters["@partitionKey"] = partition_key

        query = DocumentQuery(
            filters=tuple(filters),
            parameters=parameters,
            order_by=(("version", True),),
            top=1,
        )
        pk = partition_key if partition_key is not None else model_id

        deadline = self._deadline(timeout)
        iterator = self.store.query_documents(self.collection, query, pk, timeout=deadline)
        try:
            if deadline is None:
                first = await _first(iterator)
            else:
                first = await asyncio.wait_for(_first(iterator), deadline)
        except asyncio.TimeoutError:
            return Failure(StoreTimeoutError(deadline))

        if first is None:
            return Success(None)
        if isinstance(first, Failure):
            if first.error.is_not_found:
                return Success(None)
            return first
        return self.hydrate(first.value)

    async def query(
        self,
        query: DocumentQuery,
        partition_key: Optional[str] = None,
        *,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ResultIterator[R]:
        """
        Lazily yields hydrated records.

        A malformed document is yielded as a Failure and iteration goes on;
        a store failure, or a round-trip exceeding the deadline, is yielded
        once and ends the stream.
        """
        async for item in self.store.query_documents(
            self.collection,
            query,
            partition_key,
            page_size=page_size,
            timeout=self._deadline(timeout),
        ):
            if isinstance(item, Failure):
                yield item
                return
            yield self.hydrate(item.value)

    # ── Internals ─────────────────────────────────────────────────────────
    async def _write(
        self, new_document: N, partition_key: str, timeout: Optional[float]
    ) -> Result[R, StoreError]:
        # kind is excluded from serialization, so it never reaches the store
        stored = new_document.model_dump(mode="json", by_alias=True)
        created = await self.store.create_document(
            self.collection, stored, partition_key, timeout=self._deadline(timeout)
        )
        if isinstance(created, Failure):
            return created
        logger.debug("Wrote %s/%s", self.collection, new_document.id)
        return self.hydrate(created.value)

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        return timeout if timeout is not None else self._timeout

    @asynccontextmanager
    async def _serialized(self, partition_key: str) -> AsyncIterator[None]:
        if self._lock is None:
            yield
            return
        async with self._lock.hold((self.collection, partition_key)):
            yield


async def _first(iterator: ResultIterator):
    """First item of a store iterator (or None), closing the iterator."""
    try:
        async for item in iterator:
            return item
        return None
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


class VersionedEntityModel(Generic[B, N, R]):
    """
    Base for the entity models: holds a VersionedModel and forwards the
    generic operations to it. Entity models add their own queries.
    """

    def __init__(self, versioned: VersionedModel[B, N, R]):
        self.versioned = versioned

    @property
    def collection(self) -> str:
        return self.versioned.collection

    def to_base(self, document: CamelModel) -> B:
        return self.versioned.to_base(document)

    async def create(
        self,
        document: B,
        partition_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Result[R, StoreError]:
        return await self.versioned.create(document, partition_key, timeout=timeout)

    async def find(
        self,
        document_id: str,
        partition_key: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[R], StoreError]:
        return await self.versioned.find(document_id, partition_key, timeout=timeout)

    async def update(
        self,
        document_id: str,
        partition_key: str,
        mutate: Callable[[R], B],
        *,
        timeout: Optional[float] = None,
    ) -> Result[Optional[R], StoreError]:
        return await self.versioned.update(document_id, partition_key, mutate, timeout=timeout)

    async def upsert(
        self,
        document: B,
        *,
        timeout: Optional[float] = None,
    ) -> Result[R, StoreError]:
        return await self.versioned.upsert(document, timeout=timeout)
