"""
In-memory delayed work queue.

A local stand-in for the external queue: it accepts both released and newly
submitted units and hands them back once their delay has elapsed.
"""

import time
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class QueuedUnit:
    """A unit waiting on the queue."""

    def __init__(self, unit: Any, available_at: float, released: bool):
        self.unit = unit
        self.available_at = available_at
        self.released = released


class InMemoryWorkQueue:
    """Delayed queue implementing both the container and dispatcher roles."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._queued: list[QueuedUnit] = []

    def release(self, unit: Any, delay_seconds: int) -> None:
        """Put a running unit back on the queue."""
        self._enqueue(unit, delay_seconds, released=True)

    def submit(self, unit: Any, delay_seconds: int) -> None:
        """Enqueue a new unit."""
        self._enqueue(unit, delay_seconds, released=False)

    def _enqueue(self, unit: Any, delay_seconds: int, released: bool) -> None:
        available_at = self._clock() + delay_seconds
        self._queued.append(QueuedUnit(unit, available_at, released))
        logger.debug(
            "Unit queued",
            unit=type(unit).__name__,
            delay_seconds=delay_seconds,
            released=released,
        )

    def pop_due(self, now: float | None = None) -> list[Any]:
        """Remove and return the units whose delay has elapsed."""
        now = self._clock() if now is None else now

        due = [q for q in self._queued if q.available_at <= now]
        self._queued = [q for q in self._queued if q.available_at > now]
        due.sort(key=lambda q: q.available_at)

        return [q.unit for q in due]

    def next_available_at(self) -> float | None:
        """Get the earliest time a queued unit becomes due."""
        if not self._queued:
            return None
        return min(q.available_at for q in self._queued)

    def pending(self) -> list[QueuedUnit]:
        """Get every unit still on the queue."""
        return list(self._queued)

    def __len__(self) -> int:
        return len(self._queued)
