"""
Polling control loop for resumable polling.

This package contains the runner that drives a polling job, the resource
guard and rescheduler it consults, and a local in-memory work queue.
"""

from .queue import InMemoryWorkQueue
from .rescheduler import Rescheduler
from .resource_guard import ResourceGuard, parse_memory_limit
from .runner import ExecutionContext, PollOutcome, PollRunner

__all__ = [
    "PollRunner",
    "PollOutcome",
    "ExecutionContext",
    "ResourceGuard",
    "parse_memory_limit",
    "Rescheduler",
    "InMemoryWorkQueue",
]
