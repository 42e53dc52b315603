"""
Per-attempt deadline enforcement.

TimeoutGuard bounds one outbound call. When the deadline passes first the
call is cancelled and AttemptTimeoutError is raised in its place, so a hung
provider never blocks the rest of the fallback chain.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from relay.errors import AttemptTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 15000


class TimeoutGuard:
    """
    Bounded wait around a single awaitable.

    Guards are cheap and not shared: the dispatcher creates one per attempt.
    """

    def __init__(self, duration_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")
        self.duration_ms = duration_ms

    async def run(self, operation: Awaitable[T]) -> T:
        """
        Await the operation, cancelling it if the deadline passes first.

        asyncio.wait_for cancels the wrapped task on expiry and drops its
        timer as soon as the operation completes normally.

        Args:
            operation: Coroutine or future performing the outbound call.

        Returns:
            Whatever the operation returns.

        Raises:
            AttemptTimeoutError: If the operation did not finish in time.
        """
        try:
            return await asyncio.wait_for(operation, timeout=self.duration_ms / 1000)
        except asyncio.TimeoutError as e:
            logger.warning(f"Attempt cancelled after {self.duration_ms} ms")
            raise AttemptTimeoutError(self.duration_ms) from e


async def run_with_timeout(
    operation: Awaitable[T], duration_ms: int = DEFAULT_TIMEOUT_MS
) -> T:
    """Convenience wrapper creating a fresh guard for one call."""
    return await TimeoutGuard(duration_ms).run(operation)
