"""
Durable key-value stores for poll state.

Provides pluggable backends behind a small contract:
- Memory: process-local dictionary, for tests and single-process workers
- Redis: shared store for workers running on separate hosts
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import redis

from ..exceptions import StateStoreError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract base class for durable key-value stores."""

    #: Expiry applied on every write, None when entries never expire.
    ttl_seconds: int | None = None

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """
        Get a stored value.

        Args:
            key: Store key

        Returns:
            Stored value or None if absent
        """
        pass

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """
        Store a value, replacing any existing one.

        Args:
            key: Store key
            value: JSON-serialisable value
        """
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        """
        Check whether a key is present.

        Args:
            key: Store key

        Returns:
            True if a value is stored under the key
        """
        pass

    @abstractmethod
    def put_if_absent(self, key: str, value: Any) -> bool:
        """
        Store a value only if the key is absent, atomically per key.

        Args:
            key: Store key
            value: JSON-serialisable value

        Returns:
            True if the value was written, False if a value already existed
        """
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store with optional entry expiry."""

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize in-memory store."""
        self._data: dict[str, tuple[Any, float | None]] = {}
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def get(self, key: str) -> Any | None:
        """Get a value from memory, dropping it if expired."""
        entry = self._data.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            logger.debug(f"Evicted expired key {key}")
            return None

        return value

    def put(self, key: str, value: Any) -> None:
        """Set a value in memory."""
        expires_at = (
            self._clock() + self.ttl_seconds if self.ttl_seconds is not None else None
        )
        self._data[key] = (value, expires_at)

    def has(self, key: str) -> bool:
        """Check presence of a key in memory."""
        return self.get(key) is not None

    def put_if_absent(self, key: str, value: Any) -> bool:
        """Set a value in memory unless one is already present."""
        if self.has(key):
            return False
        self.put(key, value)
        return True

    def __len__(self) -> int:
        return len(self._data)


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed key-value store with JSON-encoded values."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "resumable-polling",
        ttl_seconds: int | None = None,
    ) -> None:
        """
        Initialize the Redis store.

        Args:
            client: Redis client (created with decode_responses=True)
            key_prefix: Prefix applied to every key
            ttl_seconds: Optional expiry applied on every write
        """
        self.client = client
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(
        cls, redis_url: str, ttl_seconds: int | None = None, **kwargs: Any
    ) -> "RedisKeyValueStore":
        """Create a store connected to the given Redis URL."""
        client = redis.from_url(redis_url, decode_responses=True)
        logger.info(f"Redis state store initialized: {redis_url}")
        return cls(client, ttl_seconds=ttl_seconds, **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"

    def get(self, key: str) -> Any | None:
        """Get a value from Redis."""
        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to read {key}: {e}", key=key) from e

        if raw is None:
            return None
        return json.loads(raw)

    def put(self, key: str, value: Any) -> None:
        """Set a value in Redis."""
        try:
            self.client.set(self._key(key), json.dumps(value), ex=self.ttl_seconds)
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to write {key}: {e}", key=key) from e

    def has(self, key: str) -> bool:
        """Check presence of a key in Redis."""
        try:
            return bool(self.client.exists(self._key(key)))
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to check {key}: {e}", key=key) from e

    def put_if_absent(self, key: str, value: Any) -> bool:
        """Set a value in Redis with SET NX."""
        try:
            written = self.client.set(
                self._key(key), json.dumps(value), nx=True, ex=self.ttl_seconds
            )
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to write {key}: {e}", key=key) from e
        return bool(written)


class StoreFactory:
    """Factory for creating a key-value store for the configured backend."""

    @staticmethod
    def create_store(backend: str, **kwargs: Any) -> KeyValueStore:
        """
        Create a store instance for a backend.

        Args:
            backend: Backend name ('memory' or 'redis')
            **kwargs: Backend options (redis_url, ttl_seconds)

        Returns:
            KeyValueStore instance

        Raises:
            ValueError: If backend is not supported
        """
        backend = backend.lower()
        ttl_seconds = kwargs.get("ttl_seconds")

        if backend == "memory":
            logger.info("Creating in-memory state store")
            return InMemoryKeyValueStore(ttl_seconds=ttl_seconds)
        elif backend == "redis":
            redis_url = kwargs.get("redis_url", "redis://localhost:6379/0")
            logger.info(f"Creating Redis state store for {redis_url}")
            return RedisKeyValueStore.from_url(redis_url, ttl_seconds=ttl_seconds)
        else:
            raise ValueError(
                f"Unknown state backend: {backend}. Supported backends: 'memory', 'redis'"
            )

    @staticmethod
    def get_supported_backends() -> list[str]:
        """Get list of supported state backends."""
        return ["memory", "redis"]
