"""
Retry policy with exponential backoff.

Applied explicitly at the call sites that need it, never as a global wrapper.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    Attempt ``n`` (zero-based) that fails waits
    ``base_delay * 2**n`` seconds plus up to ``jitter`` seconds before the
    next attempt. The last error is re-raised once attempts run out.
    """
    max_attempts: int = 3
    base_delay: float = 0.5
    jitter: float = 0.0

    def delay_for(self, attempt: int) -> float:
        delay = self.base_delay * (2 ** attempt)
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay

    async def run(
        self,
        fn: Callable[[], Awaitable[Any]],
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> Any:
        """
        Call ``fn`` until it succeeds or attempts are exhausted.

        Args:
            fn: Zero-argument coroutine function.
            sleep: Sleep function, replaceable in tests.

        Returns:
            Whatever ``fn`` returns on its first successful attempt.
        """
        attempts = max(1, self.max_attempts)
        for attempt in range(attempts):
            try:
                return await fn()
            except Exception as e:
                if attempt == attempts - 1:
                    raise
                delay = self.delay_for(attempt)
                logger.debug(
                    f"Attempt {attempt + 1}/{attempts} failed ({e}), retrying in {delay:.2f}s"
                )
                await sleep(delay)
