"""
Citizen Notify — Document Store Boundary
========================================

What:  The capability set the versioned models are written against: create,
       point-read by id + partition key, and parametrized query streamed as
       a lazy sequence of raw documents.
How:   `DocumentStore` is a Protocol; `SqlDocumentStore` (store/sql.py) is the
       implementation shipped here, and tests substitute AsyncMock doubles.
       Every call returns a Result; "not found" is Failure(NotFoundError)
       at this level, distinguishable from every other StoreError.

Query results are async iterators of Result items. They are forward-only and
cannot be restarted: a caller that needs the rows again issues a new query.
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncIterator,
    Callable,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    runtime_checkable,
)

from citizen_notify.exceptions import StoreError
from citizen_notify.results import Failure, Result, Success

T = TypeVar("T")
U = TypeVar("U")

ResultIterator = AsyncIterator[Result[T, StoreError]]


@dataclass(frozen=True)
class DocumentQuery:
    """
    A parametrized query over one collection.

    filters:     (field, parameter name) pairs, AND-ed equality predicates
    parameters:  named parameter values, e.g. {"@modelId": "AAA..."}
    order_by:    (field, descending) pairs, applied in order
    top:         maximum number of rows, None for all

    `text` renders the query in the DocumentDB SQL dialect; stores that speak
    that dialect send it as-is, the SQL store interprets the structured form.
    """

    filters: Tuple[Tuple[str, str], ...] = ()
    parameters: Mapping[str, Any] = field(default_factory=dict)
    order_by: Tuple[Tuple[str, bool], ...] = ()
    top: Optional[int] = None

    def __post_init__(self):
        for field_name, parameter in self.filters:
            if parameter not in self.parameters:
                raise ValueError(
                    f"Query filter on '{field_name}' references unknown parameter '{parameter}'"
                )
        if self.top is not None and self.top < 1:
            raise ValueError("top must be a positive integer")

    @property
    def text(self) -> str:
        top = f"TOP {self.top} " if self.top is not None else ""
        sql = f"SELECT {top}* FROM m"
        if self.filters:
            predicates = " AND ".join(f"m.{f} = {p}" for f, p in self.filters)
            sql += f" WHERE ({predicates})"
        if self.order_by:
            ordering = ", ".join(
                f"m.{f} {'DESC' if desc else 'ASC'}" for f, desc in self.order_by
            )
            sql += f" ORDER BY {ordering}"
        return sql

    def value_of(self, parameter: str) -> Any:
        return self.parameters[parameter]


@runtime_checkable
class DocumentStore(Protocol):
    async def create_document(
        self,
        collection: str,
        document: Mapping[str, Any],
        partition_key: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[dict, StoreError]:
        """Insert a new document; Failure(ConflictError) if its id exists."""
        ...

    async def read_document(
        self,
        collection: str,
        document_id: str,
        partition_key: str,
        *,
        timeout: Optional[float] = None,
    ) -> Result[dict, StoreError]:
        """Point-read; Failure(NotFoundError) when absent."""
        ...

    def query_documents(
        self,
        collection: str,
        query: DocumentQuery,
        partition_key: Optional[str] = None,
        *,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ResultIterator[dict]:
        """
        Stream matching documents; `timeout` bounds each round-trip.
        A store failure (a timeout included) is yielded once, last.
        """
        ...


# ── Iterator helpers ──────────────────────────────────────────────────────

async def map_result_iterator(
    iterator: ResultIterator[T], f: Callable[[T], U]
) -> ResultIterator[U]:
    """Apply `f` to every successful item, pass failures through."""
    async for item in iterator:
        yield item.map(f)


async def reduce_result_iterator(
    iterator: ResultIterator[T],
    f: Callable[[U, T], U],
    initial: U,
) -> Result[U, StoreError]:
    """
    Fold the successful items into a value.

    Stops at the first failure and returns it; the rest of the iterator is
    closed without being consumed.
    """
    acc = initial
    try:
        async for item in iterator:
            if isinstance(item, Failure):
                return item
            acc = f(acc, item.value)
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
    return Success(acc)


async def iterator_to_list(iterator: ResultIterator[T]) -> Result[List[T], StoreError]:
    """Materialize a (bounded) query; for unbounded ones iterate instead."""

    def append(acc: List[T], value: T) -> List[T]:
        acc.append(value)
        return acc

    return await reduce_result_iterator(iterator, append, [])
