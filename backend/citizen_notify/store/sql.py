"""
Citizen Notify — SQL-backed Document Store
==========================================

What:  A DocumentStore over a single `documents` table (async SQLAlchemy).
How:   Documents are stored as JSON bodies keyed by
       (collection, partition_key, id). Queries filter and sort on JSON
       fields and are streamed with server-side cursors, one page of rows
       per round-trip.
Who:   Built by `bootstrap.build_models()` and shared by every model.

Concurrency:
    The primary key makes physical ids unique per partition. When two
    writers create the same id, the database rejects the second insert and
    this store returns Failure(ConflictError). Nothing is retried here.

Deadlines:
    Every call accepts `timeout` (seconds, default from settings) and runs
    under asyncio.wait_for; a query applies it to opening the stream and to
    every page fetch. A timed-out create may or may not have been written:
    the insert can finish in the driver after the caller stopped waiting, so
    callers re-read before retrying (a retry of a written version conflicts).
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from citizen_notify.exceptions import (
    ConflictError,
    NotFoundError,
    StoreError,
    StoreTimeoutError,
)
from citizen_notify.results import Failure, Result, Success
from citizen_notify.store.base import DocumentQuery, ResultIterator
from citizen_notify.store.row import DocumentRow

logger = logging.getLogger(__name__)

# Store-assigned fields; never part of the stored body
METADATA_FIELDS = frozenset({"id", "_self", "_ts", "_etag"})

# Body fields sorted numerically; every other body field sorts as a string
NUMERIC_FIELDS = frozenset({"version"})


class SqlDocumentStore:
    """
    DocumentStore implementation on async SQLAlchemy.

    Args:
        session_factory: shared async_sessionmaker; one session per call
        database_name:   used to build `_self` links
        default_timeout: deadline applied when a call passes none
        page_size:       rows fetched per round-trip while streaming
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        database_name: str = "citizen-notify",
        default_timeout: Optional[float] = None,
        page_size: int = 100,
    ):
        self._session_factory = session_factory
        self._database_name = database_name
        self._default_timeout = default_timeout
        self._page_size = page_size

    def self_link(self, collection: str, document_id: str) -> str:
        return f"dbs/{self._database_name}/colls/{collection}/docs/{document_id}"

    # ── Writes ────────────────────────────────────────────────────────────
    async def create_document(
        self,
        collection: str,
        document: Mapping[str, Any],
        partition_key: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[dict, StoreError]:
        document_id = document.get("id")
        if not document_id:
            return Failure(
                StoreError(
                    message="Cannot create a document without an id",
                    code=StoreError.BAD_REQUEST,
                    context={"collection": collection},
                )
            )

        row = DocumentRow(
            collection=collection,
            partition_key=str(partition_key),
            id=str(document_id),
            body={k: v for k, v in document.items() if k not in METADATA_FIELDS},
            self_link=self.self_link(collection, str(document_id)),
            ts=int(time.time()),
            etag=uuid.uuid4().hex,
        )

        async def insert() -> None:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()

        try:
            await self._with_deadline(insert(), timeout)
        except IntegrityError:
            logger.warning(
                "Conflict creating %s/%s (partition %s)",
                collection, document_id, partition_key,
            )
            return Failure(
                ConflictError(
                    str(document_id),
                    context={"collection": collection, "partition_key": str(partition_key)},
                )
            )
        except StoreError as e:
            logger.warning("Create %s/%s failed: %s", collection, document_id, e.message)
            return Failure(e)
        except SQLAlchemyError as e:
            return Failure(self._store_error("create", collection, e))

        logger.debug("Created document %s/%s", collection, document_id)
        return Success(row.to_document())

    # ── Reads ─────────────────────────────────────────────────────────────
    async def read_document(
        self,
        collection: str,
        document_id: str,
        partition_key: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[dict, StoreError]:
        stmt = select(DocumentRow).where(
            DocumentRow.collection == collection,
            DocumentRow.partition_key == str(partition_key),
            DocumentRow.id == document_id,
        )

        async def fetch() -> Optional[DocumentRow]:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one_or_none()

        try:
            row = await self._with_deadline(fetch(), timeout)
        except StoreError as e:
            logger.warning("Read %s/%s failed: %s", collection, document_id, e.message)
            return Failure(e)
        except SQLAlchemyError as e:
            return Failure(self._store_error("read", collection, e))

        if row is None:
            return Failure(NotFoundError(resource=collection, resource_id=document_id))
        return Success(row.to_document())

    async def query_documents(
        self,
        collection: str,
        query: DocumentQuery,
        partition_key: Optional[str] = None,
        *,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ResultIterator[dict]:
        """
        Stream the documents matching `query`.

        Rows are fetched `page_size` at a time; nothing beyond the current
        page is held in memory. `timeout` bounds opening the stream and each
        page fetch. A failure (a timeout included) is yielded once and ends
        the stream.
        """
        try:
            stmt = self._compile(collection, query, partition_key)
        except ValueError as e:
            yield Failure(
                StoreError(
                    message=f"Invalid query: {e}",
                    code=StoreError.BAD_REQUEST,
                    context={"collection": collection, "query": query.text},
                )
            )
            return

        logger.debug("Querying %s: %s %s", collection, query.text, dict(query.parameters))
        size = page_size or self._page_size
        try:
            async with self._session_factory() as session:
                rows = await self._with_deadline(
                    session.stream_scalars(stmt.execution_options(yield_per=size)),
                    timeout,
                )
                pages = rows.partitions()
                while True:
                    page = await self._with_deadline(_next_page(pages), timeout)
                    if page is None:
                        break
                    for row in page:
                        yield Success(row.to_document())
        except StoreError as e:
            logger.warning("Query on %s failed: %s", collection, e.message)
            yield Failure(e)
        except SQLAlchemyError as e:
            yield Failure(self._store_error("query", collection, e))

    # ── Internals ─────────────────────────────────────────────────────────
    def _compile(self, collection: str, query: DocumentQuery, partition_key: Optional[str]):
        stmt = select(DocumentRow).where(DocumentRow.collection == collection)
        if partition_key is not None:
            stmt = stmt.where(DocumentRow.partition_key == str(partition_key))

        for field_name, parameter in query.filters:
            value = query.value_of(parameter)
            stmt = stmt.where(self._field_for_value(field_name, value) == value)

        for field_name, descending in query.order_by:
            expression = self._order_field(field_name)
            stmt = stmt.order_by(expression.desc() if descending else expression.asc())

        if query.top is not None:
            stmt = stmt.limit(query.top)
        return stmt

    @staticmethod
    def _field_for_value(field_name: str, value: Any):
        if field_name == "id":
            return DocumentRow.id
        element = DocumentRow.body[field_name]
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return element.as_boolean()
        if isinstance(value, int):
            return element.as_integer()
        if isinstance(value, float):
            return element.as_float()
        if isinstance(value, str):
            return element.as_string()
        raise ValueError(
            f"unsupported parameter type {type(value).__name__} for field '{field_name}'"
        )

    @staticmethod
    def _order_field(field_name: str):
        if field_name == "id":
            return DocumentRow.id
        if field_name == "_ts":
            return DocumentRow.ts
        if field_name in NUMERIC_FIELDS:
            return DocumentRow.body[field_name].as_integer()
        return DocumentRow.body[field_name].as_string()

    async def _with_deadline(self, awaitable, timeout: Optional[float]):
        deadline = timeout if timeout is not None else self._default_timeout
        if deadline is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, deadline)
        except asyncio.TimeoutError:
            raise StoreTimeoutError(deadline)

    @staticmethod
    def _store_error(operation: str, collection: str, error: SQLAlchemyError) -> StoreError:
        unavailable = isinstance(error, (OperationalError, InterfaceError)) or (
            isinstance(error, DBAPIError) and error.connection_invalidated
        )
        logger.error(
            "Document store %s on %s failed: %s",
            operation, collection, str(error),
            exc_info=True,
        )
        return StoreError(
            message=f"Document store {operation} failed",
            code=StoreError.UNAVAILABLE if unavailable else StoreError.INTERNAL,
            context={"collection": collection, "error_type": type(error).__name__},
        )


async def _next_page(pages):
    """Next partition of a streamed result, None once it is exhausted."""
    try:
        return await pages.__anext__()
    except StopAsyncIteration:
        return None
