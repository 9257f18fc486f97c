"""
Polling job interface.

A polling job is the domain side of a poll: it knows how to make one attempt,
how to tell whether the external operation has resolved, and how to build an
equivalent successor unit when the container cannot release the current one.
"""

from abc import ABC, abstractmethod
from typing import Any

from .config import PollingConfig
from .state.poll_state import kebab_case


class PollingJob(ABC):
    """Abstract base class for units of work that poll an external condition."""

    #: Limits applied by the runner; override per poll type.
    polling_config: PollingConfig = PollingConfig()

    @property
    def poll_type(self) -> str:
        """Namespace for stored state, derived from the class name."""
        return kebab_case(type(self).__name__)

    @abstractmethod
    def get_polling_id(self) -> str:
        """
        Get the id uniquely identifying the logical poll.

        Must be stable across every resumption of the same poll.
        """
        pass

    @abstractmethod
    def has_poll_resolved(self) -> bool:
        """Check whether the external operation has already resolved."""
        pass

    @abstractmethod
    def resolve_poll(self) -> bool:
        """
        Make one polling attempt.

        Returns:
            True if the poll resolved on this attempt
        """
        pass

    @abstractmethod
    def resolve_polling_job(self) -> Any:
        """Build a new unit equivalent to this one, for re-enqueueing."""
        pass
