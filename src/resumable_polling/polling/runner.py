"""
Poll runner for resumable polling.

This module contains the control loop that, on every iteration, decides
whether to keep polling inline, hand the poll back to the queue, or stop.
"""

import time
from collections.abc import Callable
from enum import Enum

import structlog

from ..config import ExecutionLimits, PollingConfig, Settings, get_settings
from ..exceptions import ConfigurationError
from ..job import PollingJob
from ..state.poll_state import PollState
from ..state.store import KeyValueStore, StoreFactory
from .rescheduler import Dispatcher, ExecutionContainer, Rescheduler
from .resource_guard import ResourceGuard

logger = structlog.get_logger(__name__)


class PollOutcome(str, Enum):
    """How a single execution of a poll ended."""

    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"
    EXPIRED = "expired"
    RESCHEDULED = "rescheduled"


class ExecutionContext:
    """Per-invocation state of a poll execution."""

    def __init__(self, execution_start: float):
        self.execution_start = execution_start
        # Sticky for the rest of the invocation once set
        self.expired = False


class PollRunner:
    """
    Runs one execution of a polling job.

    Each iteration re-checks the attempt limit, the poll lifetime, the
    execution's resource budget and the job's resolution before making
    another attempt. An unresolved poll that runs out of budget is
    rescheduled once; a poll that runs out of attempts or lifetime stops
    without resolving.
    """

    def __init__(
        self,
        job: PollingJob,
        state: PollState,
        rescheduler: Rescheduler,
        guard: ResourceGuard | None = None,
        config: PollingConfig | None = None,
        limits: ExecutionLimits | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the poll runner.

        Args:
            job: Domain side of the poll
            state: Durable progress record of the poll
            rescheduler: Arranges resumption when the budget runs out
            guard: Resource guard (defaults to one sharing the clock)
            config: Poll limits (defaults to the job's own)
            limits: Resource budget of this execution (defaults to unlimited)
            clock: Wall-clock source returning epoch seconds
            sleep: Blocking sleep between attempts
        """
        self.job = job
        self.state = state
        self.rescheduler = rescheduler
        self.guard = guard or ResourceGuard(clock=clock)
        self.config = config or job.polling_config
        ttl_seconds = state.store.ttl_seconds
        if ttl_seconds is not None and ttl_seconds <= self.config.lifetime_seconds:
            raise ConfigurationError(
                "Stored poll state must outlive the poll lifetime",
                context={
                    "ttl_seconds": ttl_seconds,
                    "lifetime_seconds": self.config.lifetime_seconds,
                },
            )
        self.limits = limits or ExecutionLimits()
        self._clock = clock
        self._sleep = sleep
        self.context: ExecutionContext | None = None

    @classmethod
    def from_settings(
        cls,
        job: PollingJob,
        settings: Settings | None = None,
        store: KeyValueStore | None = None,
        container: ExecutionContainer | None = None,
        dispatcher: Dispatcher | None = None,
        limits: ExecutionLimits | None = None,
    ) -> "PollRunner":
        """
        Build a runner wired from application settings.

        The job's own polling config wins over the settings defaults when its
        class or the instance overrides it.
        """
        settings = settings or get_settings()

        if job.polling_config is PollingJob.polling_config:
            config = settings.polling_config
        else:
            config = job.polling_config

        if store is None:
            store = StoreFactory.create_store(
                settings.state_backend,
                redis_url=settings.redis_url,
                ttl_seconds=settings.state_ttl_seconds,
            )

        state = PollState(store, job.poll_type, job.get_polling_id())
        rescheduler = Rescheduler(
            config.supports_inline_release,
            container=container,
            dispatcher=dispatcher,
        )

        return cls(
            job,
            state,
            rescheduler,
            config=config,
            limits=limits or settings.execution_limits,
        )

    def run(self) -> PollOutcome:
        """Run the poll until it resolves, gives up, or is rescheduled."""
        self.context = ExecutionContext(self._clock())

        # Guard and rescheduler events of this execution carry the poll identity
        with structlog.contextvars.bound_contextvars(
            poll_type=self.state.poll_type, polling_id=self.state.polling_id
        ):
            return self._run_execution()

    def _run_execution(self) -> PollOutcome:
        logger.debug("Poll execution started", attempts=self.state.get_attempts())

        while self._should_continue_polling():
            if self.job.resolve_poll():
                logger.info("Poll resolved", attempts=self.state.get_attempts())
                return PollOutcome.RESOLVED

            attempts = self.state.increment_attempts()
            logger.debug(
                "Poll not yet resolved",
                attempts=attempts,
                interval_seconds=self.config.interval_seconds,
            )

            self._sleep(self.config.interval_seconds)

        outcome = self._stop()
        logger.info(
            "Poll execution finished",
            outcome=outcome.value,
            attempts=self.state.get_attempts(),
        )
        return outcome

    def _should_continue_polling(self) -> bool:
        return (
            not self._has_exceeded_max_attempts()
            and not self._has_expired()
            and not self._is_approaching_resource_limits()
            and not self.job.has_poll_resolved()
        )

    def _stop(self) -> PollOutcome:
        # Exhausted or expired polls have failed and are not resumed
        if self._has_exceeded_max_attempts():
            return PollOutcome.EXHAUSTED

        if self._has_expired():
            return PollOutcome.EXPIRED

        if not self.job.has_poll_resolved():
            self.rescheduler.reschedule(self.job, self.config.interval_seconds)
            return PollOutcome.RESCHEDULED

        return PollOutcome.RESOLVED

    def _has_exceeded_max_attempts(self) -> bool:
        return self.state.get_attempts() >= self.config.max_attempts

    def _has_expired(self) -> bool:
        if not self.context.expired:
            age = self._clock() - self.state.get_started_at()
            self.context.expired = age > self.config.lifetime_seconds
        return self.context.expired

    def _is_approaching_resource_limits(self) -> bool:
        return self.guard.is_exhausted(self.context.execution_start, self.limits)
