"""
Wall-clock budget for a whole ETL run
"""

import asyncio
from typing import Awaitable, TypeVar
from core.exceptions import ETLTimeoutError
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


def describe_timeout(timeout_seconds: float) -> str:
    """600 -> "10 minutes", 90 -> "90 seconds" """
    if timeout_seconds >= 60 and timeout_seconds % 60 == 0:
        minutes = int(timeout_seconds // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{timeout_seconds:g} seconds"


async def run_with_deadline(operation: Awaitable[T], timeout_seconds: float = 600.0) -> T:
    """
    Await operation, cancelling it once timeout_seconds have elapsed.

    Cancellation propagates into whatever the run is awaiting (gateway call,
    upsert, backoff sleep), so a timed-out run stops doing work.

    Raises:
        ETLTimeoutError: the budget was exceeded
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        message = f"ETL timeout after {describe_timeout(timeout_seconds)}"
        logger.error(message)
        raise ETLTimeoutError(
            message,
            context={"timeout_seconds": timeout_seconds},
            original_exception=e
        )
