"""
Bounded retry with exponential backoff for one per-source operation.

The retry loop is an explicit state machine:

    ATTEMPTING(n) --success--> SUCCEEDED
    ATTEMPTING(n) --failure, n < max_retries--> sleep(backoff(n)) --> ATTEMPTING(n+1)
    ATTEMPTING(n) --failure, n == max_retries--> EXHAUSTED (last error re-raised)

With the defaults (max_retries=3, base_delay=1.0) the sleeps are 2s then 4s;
the final attempt is never followed by a sleep. The sleep function is
injectable so timing can be asserted without waiting.
"""

import asyncio
import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar
from core.exceptions import error_message
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


class RetryState(str, enum.Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def can_retry(self, attempt: int) -> bool:
        return attempt < self.max_retries

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after failed attempt n (1-based)"""
        return self.base_delay * (2 ** attempt)


class RetryExecutor:
    """
    Run an async operation until it succeeds or the policy is exhausted.

    Attributes:
        policy: Attempt bound and backoff base
        sleep: Awaitable sleep, asyncio.sleep by default
        delays: Backoff delays taken during the last execute() call
    """

    def __init__(self, policy: Optional[RetryPolicy] = None, sleep: Optional[SleepFunc] = None):
        self.policy = policy or RetryPolicy()
        self.sleep = sleep or asyncio.sleep
        self.delays: List[float] = []

    async def execute(self, operation: Callable[[], Awaitable[T]], source_name: str) -> T:
        """
        Execute operation with retries.

        Returns:
            The first successful result

        Raises:
            The exception from the last attempt once retries are exhausted
        """
        self.attempts = 1
        self.state = RetryState.ATTEMPTING
        self.delays = []
        last_error: Optional[Exception] = None

        while self.state is RetryState.ATTEMPTING:
            attempt = self.attempts
            logger.info(f"[ETL] {source_name} - Attempt {attempt}/{self.policy.max_retries}")
            try:
                result = await operation()
            except Exception as e:
                last_error = e
                logger.warning(f"[ETL] {source_name} - Attempt {attempt} failed: {error_message(e)}")

                if not self.policy.can_retry(attempt):
                    self.state = RetryState.EXHAUSTED
                    continue

                delay = self.policy.backoff(attempt)
                logger.info(f"[ETL] {source_name} - Retrying in {delay:g}s")
                self.delays.append(delay)
                await self.sleep(delay)
                self.attempts += 1
            else:
                self.state = RetryState.SUCCEEDED
                return result

        logger.error(
            f"[ETL] {source_name} - Giving up after {self.policy.max_retries} attempts"
        )
        raise last_error
