from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from clustergate.exceptions import Cancelled

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def with_deadline(operation: str, awaitable: Awaitable[T], timeout: float | None) -> T:
    """Await ``awaitable`` within ``timeout`` seconds, raising Cancelled when it elapses.

    Blocking remote calls wrapped in ``asyncio.to_thread`` are abandoned, not
    interrupted: the worker thread finishes on its own once the transport
    timeout fires.
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("gateway.deadline_exceeded", operation=operation, timeout=timeout)
        raise Cancelled(f"{operation} did not complete within {timeout:g}s") from exc
