"""
Citizen Notify — Error Taxonomy
===============================

What:  Application-specific exceptions for the versioned document layer.
How:   Each exception carries a message and an optional context dict.
       The model layer does NOT raise them for store outcomes: it wraps them
       in `Failure(...)` (see results.py) so controllers and queue handlers
       can tell "absent" from "broken" without try/except.
Who:   Created by the store and the codec; inspected by callers.

Exception Hierarchy:
    CitizenNotifyError (base)
    ├── ValidationError          → rejected before reaching the store (400)
    └── StoreError(code)         → any store-reported failure
        ├── NotFoundError        → 404, translated to Success(None) by models
        ├── ConflictError        → 409, a physical document id already exists
        └── StoreTimeoutError    → 408, the deadline expired

Callers map Success(None) to 404 and Failure(StoreError) to 500 (or 409 for
conflicts); these are observably different outcomes.
"""

from typing import Any, Dict, Optional


class CitizenNotifyError(Exception):
    """
    Base exception for all Citizen Notify errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged, never returned to end users)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = dict(context or {})
        super().__init__(self.message)


class ValidationError(CitizenNotifyError):
    """
    Raised (or returned as a Failure) when caller input fails shape/format
    constraints, e.g. an empty logical id or a negative version.

    No store round-trip happens for these.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class StoreError(CitizenNotifyError):
    """
    Any failure reported by the document store.

    `code` is HTTP-shaped so "not found" is distinguishable from everything
    else, as with the DocumentDB error codes the layer was designed against.
    """

    BAD_REQUEST = 400
    NOT_FOUND = 404
    TIMEOUT = 408
    CONFLICT = 409
    MALFORMED = 422
    INTERNAL = 500
    UNAVAILABLE = 503

    def __init__(
        self,
        message: str = "A document store error occurred",
        code: int = INTERNAL,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        ctx["code"] = code
        super().__init__(message=message, context=ctx)
        self.code = code

    @property
    def is_not_found(self) -> bool:
        return self.code == self.NOT_FOUND


class NotFoundError(StoreError):
    """The store has no document with the requested id in that partition."""

    def __init__(
        self,
        resource: str = "document",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = dict(context or {})
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, code=StoreError.NOT_FOUND, context=ctx)


class ConflictError(StoreError):
    """
    A document with the same physical id already exists.

    Raised by the store when two writers race to create the same version of a
    logical entity; the second writer gets this error and is not retried.
    """

    def __init__(
        self,
        document_id: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        ctx["document_id"] = document_id
        super().__init__(
            message=f"A document with ID '{document_id}' already exists",
            code=StoreError.CONFLICT,
            context=ctx,
        )
        self.document_id = document_id


class StoreTimeoutError(StoreError):
    """The caller-supplied deadline expired before the store answered."""

    def __init__(
        self,
        timeout: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        ctx["timeout"] = timeout
        super().__init__(
            message=f"The document store did not answer within {timeout} seconds",
            code=StoreError.TIMEOUT,
            context=ctx,
        )
        self.timeout = timeout
