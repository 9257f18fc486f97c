"""
Rescheduler for resumable polling.

Hands a poll back to the work queue for a later resumption, either by
releasing the current unit in place or by enqueueing an equivalent new one.
"""

from typing import Any, Protocol

import structlog

from ..exceptions import ConfigurationError
from ..job import PollingJob

logger = structlog.get_logger(__name__)


class ExecutionContainer(Protocol):
    """Container able to put the unit it is running back on the queue."""

    def release(self, unit: Any, delay_seconds: int) -> None: ...


class Dispatcher(Protocol):
    """Mechanism that enqueues a new unit after a delay."""

    def submit(self, unit: Any, delay_seconds: int) -> None: ...


class Rescheduler:
    """
    Arranges exactly one resumption of a poll per call.

    Releasing the current unit is preferred as it keeps the unit's identity
    and any retry counters the queue tracks. Some managed worker environments
    cannot release, in which case a successor is built by the job and
    submitted instead.
    """

    def __init__(
        self,
        supports_inline_release: bool,
        container: ExecutionContainer | None = None,
        dispatcher: Dispatcher | None = None,
    ):
        """
        Initialize the rescheduler.

        Args:
            supports_inline_release: Whether to release the current unit
            container: Execution container, required for inline release
            dispatcher: Enqueue mechanism, required otherwise

        Raises:
            ConfigurationError: If the collaborator for the chosen path is missing
        """
        if supports_inline_release and container is None:
            raise ConfigurationError(
                "An execution container is required when inline release is supported"
            )
        if not supports_inline_release and dispatcher is None:
            raise ConfigurationError(
                "A dispatcher is required when inline release is not supported"
            )

        self.supports_inline_release = supports_inline_release
        self.container = container
        self.dispatcher = dispatcher

    def reschedule(self, job: PollingJob, interval_seconds: int) -> None:
        """Schedule the poll to resume after the interval."""
        if self.supports_inline_release:
            logger.info(
                "Releasing poll back onto the queue",
                polling_id=job.get_polling_id(),
                delay_seconds=interval_seconds,
            )
            self.container.release(job, interval_seconds)
        else:
            successor = job.resolve_polling_job()
            logger.info(
                "Dispatching new poll",
                polling_id=job.get_polling_id(),
                delay_seconds=interval_seconds,
            )
            self.dispatcher.submit(successor, interval_seconds)
