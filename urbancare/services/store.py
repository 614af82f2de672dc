"""Translate record-store failures into retryable ``TransientError``."""

from __future__ import annotations

import asyncio
import functools
import logging

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, TimeoutError as PoolTimeout

from urbancare.errors import TransientError

logger = logging.getLogger(__name__)

_TRANSIENT = (OperationalError, InterfaceError, DisconnectionError, PoolTimeout, asyncio.TimeoutError)


def store_operation(fn):
    """Decorate an async service call so store outages surface as ``TransientError``.

    Engine errors (validation, authorization, transitions) pass through untouched.
    """

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except _TRANSIENT as e:
            logger.exception("Record store failure in %s", fn.__name__)
            raise TransientError("The record store is temporarily unavailable; try again") from e

    return wrapper
