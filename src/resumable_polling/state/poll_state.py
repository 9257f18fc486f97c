"""
Durable progress record of a single logical poll.

Attempts and the start time are stored under keys namespaced by the poll
type and polling id, so that every execution of the same logical poll reads
and writes the same counters.
"""

import logging
import re
import time
from collections.abc import Callable

from .store import KeyValueStore

logger = logging.getLogger(__name__)

ATTEMPTS = "attempts"
STARTED_AT = "started-at"


def kebab_case(name: str) -> str:
    """Convert a class name such as 'CheckExportJob' to 'check-export-job'."""
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name)
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1-\2", name)
    return re.sub(r"[\s_]+", "-", name).lower()


class PollState:
    """
    Attempt count and start time of one logical poll.

    Executions of the same poll are assumed to run one at a time, so the
    attempt counter is a plain read-then-write. The start time is written with
    set-if-absent semantics: the first execution to see it missing wins and
    every later execution reads the same value.
    """

    def __init__(
        self,
        store: KeyValueStore,
        poll_type: str,
        polling_id: str,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the poll state.

        Args:
            store: Durable key-value store
            poll_type: Namespace of the poll type (kebab-case)
            polling_id: Identifier stable across executions of the poll
            clock: Wall-clock source returning epoch seconds
        """
        self.store = store
        self.poll_type = poll_type
        self.polling_id = polling_id
        self._clock = clock

    def key(self, prop: str) -> str:
        """Get the store key for a property of this poll."""
        return f"{self.poll_type}:{self.polling_id}:{prop}"

    def get_attempts(self) -> int:
        """Get the number of unresolved attempts made so far."""
        value = self.store.get(self.key(ATTEMPTS))
        return int(value) if value is not None else 0

    def increment_attempts(self) -> int:
        """Record one more unresolved attempt and return the new count."""
        attempts = self.get_attempts() + 1
        self.store.put(self.key(ATTEMPTS), attempts)
        return attempts

    def get_started_at(self) -> float:
        """Get the start time of the poll, initialising it on first read."""
        key = self.key(STARTED_AT)

        started_at = self.store.get(key)
        if started_at is not None:
            return float(started_at)

        now = self._clock()
        if self.store.put_if_absent(key, now):
            logger.debug(f"Recorded start of poll {self.poll_type}:{self.polling_id}")
            return now

        # Another execution initialised it first
        return float(self.store.get(key))
