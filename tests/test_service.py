"""
Тесты сервиса гаданий
"""
import asyncio

import pytest
from redis.exceptions import ResponseError

from core.exceptions import SessionStateError
from core.redis_store import RedisStore
from modules.iching.casting import make_line
from modules.iching.models import CastingMethod, InterpretationSource, LineType, SessionStep
from modules.iching.openrouter_service import IChingOpenRouterService
from modules.iching.repository import IChingReadingRepository
from modules.iching.service import IChingService, format_reading_text
from modules.iching.session import SessionRegistry
from modules.iching.transformation import cast_hexagrams

from conftest import PROMPTS_CONFIG, BrokenRedis, ScriptedRandomSource


def run_session(service, user_id="user-1"):
    service.start_session(user_id, CastingMethod.THREE_COINS)
    service.submit_question(user_id, "Is now the time to move?")
    asyncio.run(service.load_entropy(user_id))
    service.cast_lines(user_id)
    return asyncio.run(service.request_interpretation(user_id))


def test_cast_returns_both_hexagrams(service, all_heads_source):
    response = asyncio.run(service.cast(CastingMethod.THREE_COINS))

    assert response.success
    assert response.data["primary_hexagram"].hexagram.number == 1
    assert response.data["relating_hexagram"].hexagram.number == 2
    assert len(response.data["coin_tosses"]) == 6
    assert response.data["quantum_source"] == "quantum"
    assert all_heads_source.calls == [18]


def test_random_reading_formats_telegram_text(service):
    response = asyncio.run(service.random_reading())
    data = response.data

    assert data.number == 1
    assert data.title == "The Creative (乾)"
    assert "*СУЖДЕНИЕ:*" in data.formatted_text
    assert "*ПРОИЗВОДНАЯ ГЕКСАГРАММА:* 2. The Receptive" in data.formatted_text


def test_format_without_changes():
    primary, relating = cast_hexagrams([make_line(i, LineType.YANG) for i in range(1, 7)])
    text = format_reading_text(primary, relating)
    assert "ИЗМЕНЯЮЩИЕСЯ ЧЕРТЫ" not in text
    assert "ПРОИЗВОДНАЯ" not in text


def test_get_hexagram_out_of_range(service):
    assert service.get_hexagram(11).data.english_name
    response = service.get_hexagram(99)
    assert not response.success
    assert response.error


def test_full_session_and_save(service):
    response = run_session(service)
    snapshot = response.data

    assert snapshot.step == SessionStep.COMPLETE
    assert snapshot.interpretation.source == InterpretationSource.AI
    assert snapshot.interpretation.kind == "v2"

    saved = asyncio.run(service.save_session("user-1"))
    assert saved.data["persisted"]
    reading = saved.data["reading"]
    assert reading.metadata.quantum_source == "quantum"
    assert reading.metadata.model == "test/model"

    # Повторное сохранение не создает дубликат
    again = asyncio.run(service.save_session("user-1"))
    assert again.data["id"] == saved.data["id"]
    history = asyncio.run(service.load_history("user-1"))
    assert [r.id for r in history.data] == [saved.data["id"]]


def test_save_requires_complete_session(service):
    service.start_session("user-1", CastingMethod.THREE_COINS)
    with pytest.raises(SessionStateError):
        asyncio.run(service.save_session("user-1"))


def test_cast_lines_one_at_a_time(service):
    service.start_session("user-1", CastingMethod.THREE_COINS)
    service.submit_question("user-1", "Will this work out?")
    asyncio.run(service.load_entropy("user-1"))

    first = service.cast_lines("user-1", count=1).data
    assert len(first.cast_lines) == 1
    rest = service.cast_lines("user-1", count=6).data
    assert len(rest.cast_lines) == 6
    assert rest.step == SessionStep.INTERPRETATION


def test_save_keeps_reading_when_storage_fails(service):
    run_session(service)
    service.repository = IChingReadingRepository(RedisStore("redis://test", client=BrokenRedis()))

    response = asyncio.run(service.save_session("user-1"))

    assert response.success
    assert not response.data["persisted"]
    assert response.data["id"].startswith("local-")
    assert response.data["reading"].id == response.data["id"]


def test_interpretation_without_ai_is_static(repository):
    interpreter = IChingOpenRouterService(None, PROMPTS_CONFIG)
    service = IChingService(ScriptedRandomSource([1] * 18), interpreter, repository, SessionRegistry())

    snapshot = run_session(service).data

    assert snapshot.step == SessionStep.COMPLETE
    assert snapshot.interpretation.source == InterpretationSource.STATIC


def test_teardown_discards_session(service):
    service.start_session("user-1", CastingMethod.YARROW_STALKS)
    assert service.teardown_session("user-1").data == {"discarded": True}
    assert service.teardown_session("user-1").data == {"discarded": False}
    with pytest.raises(SessionStateError):
        service.get_session("user-1")


def test_failed_save_leaves_no_orphan_record(service, fake_redis):
    run_session(service)
    fake_redis.fail("LPUSH", ResponseError("OOM command not allowed"))

    response = asyncio.run(service.save_session("user-1"))

    assert not response.data["persisted"]
    assert response.data["id"].startswith("local-")
    assert not any(key.startswith("iching:reading:") for key in fake_redis.values)
    assert service.get_session("user-1").data.saved_reading_id is None
