"""
Correlation ids for tracing one inbound message or publish pass through the logs.

The id lives in a context variable so it follows the asyncio task that set it.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "ensure_correlation_id",
    "get_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("ring_mqtt_correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str]:
    """
    Scope a correlation id, generating one when none is given.

    The previous id is restored on exit.

    Example:
        with correlation_context() as corr_id:
            logger.info("Routing command")
    """
    token = _correlation_id.set(correlation_id or uuid.uuid4().hex)
    try:
        yield _correlation_id.get() or ""
    finally:
        _correlation_id.reset(token)


def ensure_correlation_id() -> str:
    """Return the current correlation id, setting a fresh one for task entry points."""
    current_id = _correlation_id.get()
    if current_id is None:
        current_id = uuid.uuid4().hex
        _ = _correlation_id.set(current_id)
    return current_id
