"""
State management for resumable polling.

This package provides the durable poll progress record and the pluggable
key-value backends it is stored in.
"""

from .poll_state import PollState, kebab_case
from .store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    StoreFactory,
)

__all__ = [
    "PollState",
    "kebab_case",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "StoreFactory",
]
