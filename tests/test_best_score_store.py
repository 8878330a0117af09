from __future__ import annotations

import fakeredis
import pytest
import redis

from best_score_store import InMemoryStore, RedisStore
from engine import Game2048Engine
from errors import StorageUnavailable


class _BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def set(self, key, value):
        raise redis.ConnectionError("connection refused")


def test_in_memory_store_keeps_strings():
    store = InMemoryStore()
    assert store.get("2048BestScore") is None
    store.set("2048BestScore", 512)
    assert store.get("2048BestScore") == "512"


def test_redis_store_uses_prefixed_keys():
    r = fakeredis.FakeRedis(decode_responses=True)
    store = RedisStore(r)
    store.set("2048BestScore", 4096)
    assert r.get("tile2048:2048BestScore") == "4096"
    assert store.get("2048BestScore") == "4096"
    assert store.get("missing") is None


def test_redis_store_wraps_backend_errors():
    store = RedisStore(_BrokenRedis())
    with pytest.raises(StorageUnavailable):
        store.get("2048BestScore")
    with pytest.raises(StorageUnavailable):
        store.set("2048BestScore", 2)


def test_engine_reads_best_score_from_redis():
    r = fakeredis.FakeRedis(decode_responses=True)
    r.set("tile2048:2048BestScore", "2500")
    engine = Game2048Engine(store=RedisStore(r))
    assert engine.best_score == 2500


def test_engine_reads_bytes_from_redis_without_decoding():
    r = fakeredis.FakeRedis()
    r.set("tile2048:2048BestScore", "64")
    engine = Game2048Engine(store=RedisStore(r))
    assert engine.best_score == 64


def test_engine_survives_unreachable_redis():
    engine = Game2048Engine(store=RedisStore(_BrokenRedis()))
    assert engine.best_score == 0
