"""
Тесты хранилища Redis: переподключение и транзакции
"""
import asyncio
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from core.exceptions import PersistenceFailure
from core.redis_store import RedisStore

from conftest import BrokenRedis


def test_reconnects_once_after_connection_drop(store, fake_redis):
    fake_redis.values["key"] = json.dumps({"a": 1})
    fake_redis.fail("GET", RedisConnectionError("connection reset"))

    assert asyncio.run(store.get_json("key")) == {"a": 1}
    assert fake_redis.commands == ["GET", "PING", "GET"]


def test_second_failure_after_reconnect_is_persistence_failure(store, fake_redis):
    fake_redis.fail("GET", RedisConnectionError("connection reset"), times=2)

    with pytest.raises(PersistenceFailure):
        asyncio.run(store.get_json("key"))


def test_failed_reconnect_is_persistence_failure(store, fake_redis):
    fake_redis.fail("GET", RedisConnectionError("connection reset"))
    fake_redis.fail("PING", RedisConnectionError("connection refused"))

    with pytest.raises(PersistenceFailure):
        asyncio.run(store.get_json("key"))
    assert fake_redis.commands == ["GET", "PING"]


def test_command_error_does_not_reconnect(store, fake_redis):
    fake_redis.fail("MGET", ResponseError("WRONGTYPE"))

    with pytest.raises(PersistenceFailure):
        asyncio.run(store.get_many_json(["a", "b"]))
    assert "PING" not in fake_redis.commands


def test_ping_reports_broken_connection():
    assert asyncio.run(RedisStore("redis://test", client=BrokenRedis()).ping()) is False


def test_corrupt_value_is_deleted(store, fake_redis):
    fake_redis.values["key"] = "{not json"

    assert asyncio.run(store.get_json("key")) is None
    assert "key" not in fake_redis.values


def test_transaction_applies_all_commands(store, fake_redis):
    def queue(pipe):
        pipe.set("reading", "{}")
        pipe.lpush("history", "reading")

    results = asyncio.run(store.transaction("SAVE", queue))

    assert results == [True, 1]
    assert fake_redis.values == {"reading": "{}"}
    assert fake_redis.lists == {"history": ["reading"]}


def test_transaction_failure_applies_nothing(store, fake_redis):
    fake_redis.fail("LPUSH", ResponseError("OOM command not allowed"))

    def queue(pipe):
        pipe.set("reading", "{}")
        pipe.lpush("history", "reading")

    with pytest.raises(PersistenceFailure):
        asyncio.run(store.transaction("SAVE", queue))
    assert fake_redis.values == {}
