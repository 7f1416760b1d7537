"""
Тесты хранилища гаданий в Redis
"""
import asyncio
import json

import pytest
from redis.exceptions import ResponseError

from core.exceptions import AuthenticationRequired, PersistenceFailure, ReadingNotFound
from core.redis_store import RedisStore
from modules.iching.casting import make_line
from modules.iching.models import (
    CastingMethod,
    IChingReading,
    InterpretationSource,
    LineType,
    ReadingMetadata,
    StructuredInterpretationV2,
    TextInterpretation,
)
from modules.iching.repository import (
    HISTORY_KEY,
    READING_KEY,
    IChingReadingRepository,
    deserialize_interpretation,
    serialize_interpretation,
)
from modules.iching.transformation import cast_hexagrams

from conftest import BrokenRedis, v2_payload


def make_reading(reading_id: str, user_id: str = "user-1", interpretation=None) -> IChingReading:
    types = [LineType.CHANGING_YANG, LineType.YIN, LineType.YANG, LineType.YIN, LineType.YANG, LineType.YIN]
    primary, relating = cast_hexagrams([make_line(i, t) for i, t in enumerate(types, start=1)])
    return IChingReading(
        id=reading_id,
        user_id=user_id,
        question="What should I focus on?",
        casting_method=CastingMethod.THREE_COINS,
        primary_hexagram=primary,
        relating_hexagram=relating,
        interpretation=interpretation or TextInterpretation(source=InterpretationSource.STATIC, content="Static text"),
        metadata=ReadingMetadata(model="test/model", generation_time=1.5, quantum_source="crypto"),
    )


def test_save_and_load_history_newest_first(repository, fake_redis):
    async def scenario():
        for n in range(3):
            await repository.save(make_reading(f"r{n}"), "user-1")
        return await repository.load_history("user-1")

    history = asyncio.run(scenario())

    assert [r.id for r in history] == ["r2", "r1", "r0"]
    assert fake_redis.lists[HISTORY_KEY.format(user_id="user-1")] == ["r2", "r1", "r0"]


def test_reading_round_trip_rehydrates_hexagrams(repository):
    original = make_reading("r1")

    async def scenario():
        await repository.save(original, "user-1")
        return await repository.get("r1", "user-1")

    loaded = asyncio.run(scenario())

    assert loaded.primary_hexagram == original.primary_hexagram
    assert loaded.relating_hexagram == original.relating_hexagram
    assert loaded.primary_hexagram.changing_lines == (1,)
    assert loaded.metadata.quantum_source == "crypto"
    assert loaded.interpretation.content == "Static text"


def test_structured_interpretation_saved_as_json_string(repository, fake_redis):
    interpretation = StructuredInterpretationV2(source=InterpretationSource.AI, content=v2_payload(), model="m")
    asyncio.run(repository.save(make_reading("r1", interpretation=interpretation), "user-1"))

    stored = json.loads(fake_redis.values[READING_KEY.format(reading_id="r1")])
    assert stored["interpretation"]["kind"] == "v2"
    assert isinstance(stored["interpretation"]["content"], str)

    loaded = asyncio.run(repository.get("r1", "user-1"))
    assert loaded.interpretation.kind == "v2"
    assert loaded.interpretation.content.title == v2_payload()["title"]


def test_legacy_and_corrupt_interpretations():
    legacy = deserialize_interpretation("Old plain text reading")
    assert legacy.kind == "text"
    assert legacy.content == "Old plain text reading"

    broken = deserialize_interpretation({"kind": "v2", "source": "ai", "content": "{not json"})
    assert broken.kind == "text"

    text = TextInterpretation(source=InterpretationSource.AI, content="Hello")
    assert deserialize_interpretation(serialize_interpretation(text)) == text


def test_history_limit(store, fake_redis):
    repository = IChingReadingRepository(store, history_limit=2)

    async def scenario():
        for n in range(4):
            await repository.save(make_reading(f"r{n}"), "user-1")
        return await repository.load_history("user-1", limit=10)

    history = asyncio.run(scenario())
    assert [r.id for r in history] == ["r3", "r2"]
    assert sorted(fake_redis.values) == [READING_KEY.format(reading_id="r2"), READING_KEY.format(reading_id="r3")]


def test_corrupt_record_is_skipped(repository, fake_redis):
    async def scenario():
        await repository.save(make_reading("r1"), "user-1")
        await repository.save(make_reading("r2"), "user-1")
        fake_redis.values[READING_KEY.format(reading_id="r1")] = json.dumps({"id": "r1"})
        return await repository.load_history("user-1")

    assert [r.id for r in asyncio.run(scenario())] == ["r2"]


def test_missing_user_fails_before_io(repository, fake_redis):
    with pytest.raises(AuthenticationRequired):
        asyncio.run(repository.save(make_reading("r1"), None))
    with pytest.raises(AuthenticationRequired):
        asyncio.run(repository.load_history(""))
    with pytest.raises(AuthenticationRequired):
        asyncio.run(repository.delete("r1", None))
    assert fake_redis.commands == []


def test_delete_only_own_readings(repository, fake_redis):
    async def scenario():
        await repository.save(make_reading("r1"), "user-1")
        with pytest.raises(ReadingNotFound):
            await repository.delete("r1", "user-2")
        with pytest.raises(ReadingNotFound):
            await repository.delete("missing", "user-1")
        await repository.delete("r1", "user-1")
        return await repository.load_history("user-1")

    assert asyncio.run(scenario()) == []
    assert READING_KEY.format(reading_id="r1") not in fake_redis.values


def test_ttl_applied(store, fake_redis):
    repository = IChingReadingRepository(store, ttl_days=1)
    asyncio.run(repository.save(make_reading("r1"), "user-1"))
    assert fake_redis.ttls[READING_KEY.format(reading_id="r1")] == 86400
    assert fake_redis.ttls[HISTORY_KEY.format(user_id="user-1")] == 86400


def test_storage_errors_become_persistence_failure():
    repository = IChingReadingRepository(RedisStore("redis://test", client=BrokenRedis()))
    with pytest.raises(PersistenceFailure):
        asyncio.run(repository.save(make_reading("r1"), "user-1"))


def test_failed_history_write_leaves_no_record(repository, fake_redis):
    fake_redis.fail("LPUSH", ResponseError("OOM command not allowed"))

    with pytest.raises(PersistenceFailure):
        asyncio.run(repository.save(make_reading("r1"), "user-1"))

    assert fake_redis.values == {}
    assert fake_redis.lists == {}


def test_delete_removes_record_and_history_together(repository, fake_redis):
    asyncio.run(repository.save(make_reading("r1"), "user-1"))
    fake_redis.fail("LREM", ResponseError("OOM command not allowed"))

    with pytest.raises(PersistenceFailure):
        asyncio.run(repository.delete("r1", "user-1"))

    assert READING_KEY.format(reading_id="r1") in fake_redis.values
    assert fake_redis.lists[HISTORY_KEY.format(user_id="user-1")] == ["r1"]
