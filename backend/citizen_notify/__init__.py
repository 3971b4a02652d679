"""
Citizen Notify — Package Initializer
====================================

What: The versioned document layer of the citizen-notification backend.
Who:  Imported by HTTP controllers and queue handlers (which live elsewhere).

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Callers (controllers, handlers)   │  ← out of this package
    ├─────────────────────────────────────┤
    │     Entity models (models/*)        │  ← Profile, Organization, Service, SenderService
    ├─────────────────────────────────────┤
    │  Generic versioned model + codec    │  ← optimistic, append-only versions
    ├─────────────────────────────────────┤
    │       Document store (store/*)      │  ← create / read / query by partition
    ├─────────────────────────────────────┤
    │        Database (async SQLAlchemy)  │
    └─────────────────────────────────────┘

    Every layer above the store returns a Result instead of raising:
    Success(value), Success(None) for "not there", Failure(error) otherwise.
"""

__version__ = "1.0.0"
