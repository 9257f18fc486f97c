"""
Resumable Polling

Resource-aware polling for background work units that resume across
separate executions instead of holding a worker slot indefinitely.
"""

__version__ = "0.1.0"

from .config import ExecutionLimits, PollingConfig, Settings
from .exceptions import PollingError
from .job import PollingJob
from .polling import PollOutcome, PollRunner
from .state import PollState

__all__ = [
    "Settings",
    "PollingConfig",
    "ExecutionLimits",
    "PollingError",
    "PollingJob",
    "PollRunner",
    "PollOutcome",
    "PollState",
]
