"""
Bounded-concurrency task runner with exponential-backoff retry.

Tasks are zero-argument coroutine factories. :meth:`ThrottledExecutor.run`
starts them in batches of ``limit``, waits for the whole batch, pauses, and
starts the next one. Every task gets its own :class:`TaskOutcome` slot, so a
task that keeps failing never hides the results of its siblings.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from backlink_scout.config import ScoutConfig

__all__ = ("TaskOutcome", "ThrottledExecutor")

T = TypeVar("T")
TaskFactory = Callable[[], Awaitable[T]]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaskOutcome(Generic[T]):
    """Settled result of one task: either a value or the failure reason."""

    fulfilled: bool
    value: Optional[T] = None
    reason: Optional[BaseException] = None

    @property
    def rejected(self) -> bool:
        return not self.fulfilled


class ThrottledExecutor:
    """Stateless between calls; holds only its limits."""

    def __init__(
        self,
        *,
        limit: int = 3,
        pause: float = 1.0,
        attempts: int = 3,
        base_delay: float = 2.0,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if attempts < 1:
            raise ValueError("attempts must be >= 1")
        self.limit = limit
        self.pause = pause
        self.attempts = attempts
        self.base_delay = base_delay
        self._sleep = asyncio.sleep

    @classmethod
    def from_config(cls, config: ScoutConfig, *, limit: Optional[int] = None) -> ThrottledExecutor:
        return cls(
            limit=limit or config.max_concurrent_requests,
            pause=config.batch_pause,
            attempts=config.max_retries,
            base_delay=config.retry_delay,
        )

    async def retry(self, factory: TaskFactory[T]) -> T:
        """Await ``factory()`` up to ``attempts`` times, sleeping base, 2*base, ... between tries.

        The last exception is re-raised once attempts are exhausted.
        """
        for attempt in range(self.attempts):
            try:
                return await factory()
            except Exception as exc:
                if attempt == self.attempts - 1:
                    raise
                delay = self.base_delay * (2 ** attempt)
                logger.warning(
                    "Retry %d/%d after %.1f s: %s", attempt + 1, self.attempts, delay, exc
                )
                await self._sleep(delay)
        raise RuntimeError("unreachable")  # pragma: no cover

    async def run(
        self,
        factories: Sequence[TaskFactory[Any]],
        *,
        retry: bool = False,
    ) -> List[TaskOutcome[Any]]:
        """Run *factories* with at most ``limit`` in flight.

        Outcomes are returned in submission order, one per factory.
        """
        outcomes: List[TaskOutcome[Any]] = []
        total = len(factories)
        for start in range(0, total, self.limit):
            batch = factories[start:start + self.limit]
            calls = [self.retry(f) if retry else f() for f in batch]
            settled = await asyncio.gather(*calls, return_exceptions=True)
            for result in settled:
                if isinstance(result, BaseException):
                    outcomes.append(TaskOutcome(fulfilled=False, reason=result))
                else:
                    outcomes.append(TaskOutcome(fulfilled=True, value=result))
            if start + self.limit < total and self.pause > 0:
                await self._sleep(self.pause)
        rejected = sum(1 for o in outcomes if o.rejected)
        if rejected:
            logger.debug("%d of %d tasks rejected", rejected, total)
        return outcomes
