"""
Pytest configuration and fixtures for resumable polling tests.
"""

from unittest.mock import Mock

import pytest

from resumable_polling.config import PollingConfig
from resumable_polling.job import PollingJob
from resumable_polling.state import InMemoryKeyValueStore, PollState


class FakeClock:
    """Clock that advances only when slept on or moved explicitly."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedJob(PollingJob):
    """
    Polling job whose external operation resolves after a number of checks.

    Successor units share the list of checks made, the way real successors
    would share the external operation they poll.
    """

    def __init__(
        self,
        polling_id: str = "export-42",
        resolves_on: int | None = None,
        config: PollingConfig | None = None,
        calls: list[str] | None = None,
    ):
        self.polling_id = polling_id
        self.resolves_on = resolves_on
        self.calls = calls if calls is not None else []
        self.resolved = False
        if config is not None:
            self.polling_config = config

    @property
    def checks(self) -> int:
        return len(self.calls)

    def get_polling_id(self) -> str:
        return self.polling_id

    def has_poll_resolved(self) -> bool:
        if self.resolved:
            return True
        return self.resolves_on is not None and self.checks >= self.resolves_on

    def resolve_poll(self) -> bool:
        self.calls.append(self.polling_id)
        return self.has_poll_resolved()

    def resolve_polling_job(self) -> "ScriptedJob":
        return ScriptedJob(
            self.polling_id, self.resolves_on, self.polling_config, self.calls
        )


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic wall clock."""
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryKeyValueStore:
    """In-memory key-value store sharing the fake clock."""
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def job() -> ScriptedJob:
    """Job that never resolves."""
    return ScriptedJob()


@pytest.fixture
def poll_state(
    store: InMemoryKeyValueStore, job: ScriptedJob, clock: FakeClock
) -> PollState:
    """Poll state for the default job."""
    return PollState(store, job.poll_type, job.get_polling_id(), clock=clock)


@pytest.fixture
def container() -> Mock:
    """Mock execution container."""
    return Mock(spec=["release"])


@pytest.fixture
def dispatcher() -> Mock:
    """Mock enqueue mechanism."""
    return Mock(spec=["submit"])
