# best_score_store.py
# Key-value stores used to persist the best score between sessions.

from __future__ import annotations

from typing import Dict, Optional, Protocol, Union

import redis

from errors import StorageUnavailable

StoredValue = Union[int, str, bytes, None]

# Key the web widget used for its local-storage best score.
DEFAULT_BEST_SCORE_KEY = "2048BestScore"


class BestScoreStore(Protocol):
    def get(self, key: str) -> StoredValue:
        ...

    def set(self, key: str, value: int) -> None:
        ...


class InMemoryStore:
    """Process-local store. Values are kept as strings, like browser storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: int) -> None:
        self.values[key] = str(value)


class RedisStore:
    """Store backed by a redis.Redis client (decode_responses=True recommended)."""

    def __init__(self, r: redis.Redis, prefix: str = "tile2048:"):
        self.r = r
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> StoredValue:
        try:
            return self.r.get(self._key(key))
        except redis.RedisError as e:
            raise StorageUnavailable(f"Could not read {key!r}: {e}") from e

    def set(self, key: str, value: int) -> None:
        try:
            self.r.set(self._key(key), str(value))
        except redis.RedisError as e:
            raise StorageUnavailable(f"Could not write {key!r}: {e}") from e


def create_redis_store(url: str) -> RedisStore:
    # decode_responses=True => strings in/out instead of bytes
    return RedisStore(redis.Redis.from_url(url, decode_responses=True))
