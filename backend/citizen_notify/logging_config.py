"""
Citizen Notify — Logging Setup
==============================

What:  Root logger configuration plus a correlation id attached to every record.
How:   `setup_logging()` configures stdlib logging once; `correlation_id_var`
       is a ContextVar that callers (an HTTP request, a queue message) set via
       `bind_correlation_id()`, and `CorrelationIdFilter` copies it onto each
       LogRecord so store and model logs can be grouped per invocation.
When:  `setup_logging()` is called by the process entry point, before the
       models are built.

Format:
    2024-01-15T12:00:00 [INFO] citizen_notify.store.sql [a1b2c3d4] Created document ...
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

from citizen_notify.config import settings

# Coroutine-local: concurrent invocations on one event loop keep their own id
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s] %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Injects the current correlation id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def bind_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Set the correlation id for the current context and return it.

    A short random id is generated when none is given (8 chars is enough to
    correlate log lines of one invocation).
    """
    cid = correlation_id or str(uuid.uuid4())[:8]
    correlation_id_var.set(cid)
    return cid


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the entire process.

    Replaces any existing root configuration (force=True) and quiets chatty
    third-party loggers.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=getattr(logging, level or settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
