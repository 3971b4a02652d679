"""Document store boundary and its SQL implementation."""

from citizen_notify.store.base import (
    DocumentQuery,
    DocumentStore,
    ResultIterator,
    iterator_to_list,
    map_result_iterator,
    reduce_result_iterator,
)
from citizen_notify.store.sql import SqlDocumentStore

__all__ = [
    "DocumentQuery",
    "DocumentStore",
    "ResultIterator",
    "SqlDocumentStore",
    "iterator_to_list",
    "map_result_iterator",
    "reduce_result_iterator",
]
