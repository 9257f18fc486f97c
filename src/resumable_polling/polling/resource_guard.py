"""
Resource guard for resumable polling.

This module checks whether the current execution is close to its wall-clock
or memory budget, so the poll can hand itself back to the queue before the
container kills it mid-update.
"""

import time
from collections.abc import Callable

import psutil
import structlog

from ..config import UNLIMITED_MEMORY, ExecutionLimits, parse_memory_limit

logger = structlog.get_logger(__name__)

# Seconds of headroom below which the execution is considered nearly out of time
TIME_THRESHOLD_SECONDS = 10

# Percentage of the memory limit that must remain free
MEMORY_THRESHOLD_PERCENT = 30

UNLIMITED_TIME = 0


def current_memory_usage() -> int:
    """Get the resident memory of the current process in bytes."""
    return psutil.Process().memory_info().rss


class ResourceGuard:
    """
    Evaluates how close the current execution is to its resource budget.

    The guard is stateless; every check reads the clock and memory usage
    afresh.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        memory_usage: Callable[[], int] = current_memory_usage,
    ):
        """
        Initialize the resource guard.

        Args:
            clock: Wall-clock source returning epoch seconds
            memory_usage: Callable returning current memory usage in bytes
        """
        self._clock = clock
        self._memory_usage = memory_usage

    def is_approaching_time_limit(
        self, execution_start: float, max_execution_seconds: float
    ) -> bool:
        """Check if less than the time threshold remains in the budget."""
        if max_execution_seconds == UNLIMITED_TIME:
            return False

        elapsed = self._clock() - execution_start
        time_remaining = max_execution_seconds - elapsed

        return time_remaining < TIME_THRESHOLD_SECONDS

    def is_approaching_memory_limit(self, memory_limit: str | int) -> bool:
        """Check if free memory has dropped below the threshold percentage."""
        memory_limit_bytes = parse_memory_limit(memory_limit)

        if memory_limit_bytes == UNLIMITED_MEMORY:
            return False

        threshold = memory_limit_bytes * (MEMORY_THRESHOLD_PERCENT / 100)
        usage = self._memory_usage()

        return (memory_limit_bytes - usage) < threshold

    def is_exhausted(self, execution_start: float, limits: ExecutionLimits) -> bool:
        """Check both budgets of the current execution."""
        if self.is_approaching_time_limit(
            execution_start, limits.max_execution_seconds
        ):
            logger.debug(
                "Execution time budget nearly spent",
                max_execution_seconds=limits.max_execution_seconds,
            )
            return True

        if self.is_approaching_memory_limit(limits.memory_limit):
            logger.debug(
                "Memory budget nearly spent", memory_limit=limits.memory_limit
            )
            return True

        return False
