"""Retry a catalog lookup until a freshly provisioned entity becomes readable."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from loguru import logger

from src.catalog_sync.core.errors import NotConverged, NotFoundError
from src.catalog_sync.runtime.config.config_data import ConvergenceConfig

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryState(str, Enum):
    PENDING = "pending"
    FOUND = "found"
    NOT_FOUND_RETRY = "not_found_retry"
    OTHER_FAILURE = "other_failure"
    NOT_CONVERGED = "not_converged"


class ConvergenceRetrier:
    """Fixed-interval retry of a lookup that fails with ``NotFoundError``.

    Each attempt moves the retrier out of ``PENDING``:

    - ``FOUND``: the lookup result is returned.
    - ``NOT_FOUND_RETRY``: sleep ``delay_seconds`` and go back to ``PENDING``.
    - ``NOT_CONVERGED``: the lookup was not found ``max_attempts`` times.
    - ``OTHER_FAILURE``: any other error, re-raised as is.

    No sleep follows the last attempt. The loop has no cancellation hook
    of its own; cancelling the awaiting task stops it at the next await.
    """

    def __init__(
        self,
        max_attempts: int = 10,
        delay_seconds: float = 0.3,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, config: ConvergenceConfig, sleep: Sleep = asyncio.sleep
    ) -> ConvergenceRetrier:
        return cls(
            max_attempts=config.max_attempts,
            delay_seconds=config.retry_delay_seconds,
            sleep=sleep,
        )

    async def run(self, entity_ref: str, lookup: Callable[[], Awaitable[T]]) -> T:
        """Call ``lookup`` until it succeeds or the retry budget is spent.

        Raises:
            NotConverged: every attempt failed with NotFoundError
            Exception: the first error that is not a NotFoundError
        """
        state = RetryState.PENDING
        attempts = 0
        result: T | None = None
        failure: Exception | None = None

        while True:
            if state is RetryState.PENDING:
                attempts += 1
                try:
                    result = await lookup()
                except NotFoundError:
                    if attempts >= self.max_attempts:
                        state = RetryState.NOT_CONVERGED
                    else:
                        state = RetryState.NOT_FOUND_RETRY
                except Exception as e:
                    failure = e
                    state = RetryState.OTHER_FAILURE
                else:
                    state = RetryState.FOUND

            elif state is RetryState.NOT_FOUND_RETRY:
                logger.debug(
                    f"{entity_ref} not yet in catalog (attempt {attempts}/"
                    f"{self.max_attempts}), retrying in {self.delay_seconds}s"
                )
                await self._sleep(self.delay_seconds)
                state = RetryState.PENDING

            elif state is RetryState.FOUND:
                if attempts > 1:
                    logger.debug(f"{entity_ref} found after {attempts} attempts")
                return result  # type: ignore[return-value]

            elif state is RetryState.OTHER_FAILURE:
                assert failure is not None
                logger.warning(
                    f"Lookup of {entity_ref} failed on attempt {attempts}: {failure}"
                )
                raise failure

            else:
                logger.error(
                    f"{entity_ref} did not converge after {attempts} attempts"
                )
                raise NotConverged(entity_ref, attempts)
