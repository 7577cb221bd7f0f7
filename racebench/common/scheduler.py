"""
Bounded fan-out/fan-in scheduler for independent async tasks.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedScheduler:
    """Runs async units of work with at most ``concurrency`` in flight.

    Units are zero-argument callables returning awaitables, so a unit does
    not start until it holds a slot. Every unit runs to completion or
    failure; if any failed, ``run`` raises the first failure (by completion
    time) once all outcomes are known.
    """

    def __init__(self, concurrency: int):
        if concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {concurrency}")

        self._concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self._in_flight = 0
        self._peak_in_flight = 0
        self.failures: List[BaseException] = []

    async def _run_unit(self, unit: Callable[[], Awaitable[T]]) -> Optional[T]:
        async with self._semaphore:
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
            try:
                return await unit()
            except Exception as e:
                self.failures.append(e)
                return None
            finally:
                self._in_flight -= 1

    async def run(self, units: Sequence[Callable[[], Awaitable[T]]]) -> List[T]:
        """Run all units and return their results in input order.

        Args:
            units: Zero-argument callables producing awaitables

        Returns:
            List of unit results, same order as ``units``

        Raises:
            The first exception raised by any unit, after every unit settled
        """
        self.failures = []
        results = await asyncio.gather(*(self._run_unit(unit) for unit in units))

        if self.failures:
            logger.debug(
                f"{len(self.failures)}/{len(units)} units failed, first: {self.failures[0]!r}"
            )
            raise self.failures[0]
        return results

    def in_flight(self) -> int:
        """Number of units currently running."""
        return self._in_flight

    def peak_in_flight(self) -> int:
        """Highest number of units that ran at the same time."""
        return self._peak_in_flight

    def max_permits(self) -> int:
        return self._concurrency

    def __repr__(self) -> str:
        return (
            f"BoundedScheduler(concurrency={self._concurrency}, "
            f"in_flight={self._in_flight}, peak={self._peak_in_flight})"
        )
