"""
Хранение гаданий пользователей в Redis
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from core.exceptions import AuthenticationRequired, PersistenceFailure, ReadingNotFound
from core.redis_store import RedisStore
from modules.iching.hexagrams import get_hexagram_by_number
from modules.iching.models import (
    CastHexagram,
    HexagramLine,
    IChingReading,
    InterpretationResult,
    InterpretationSource,
    ReadingMetadata,
    StructuredInterpretationV1,
    StructuredInterpretationV2,
    TextInterpretation,
)

logger = logging.getLogger(__name__)

READING_KEY = "iching:reading:{reading_id}"
HISTORY_KEY = "iching:history:{user_id}"


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise AuthenticationRequired("пользователь не аутентифицирован")
    return user_id


def serialize_cast(cast: Optional[CastHexagram]) -> Optional[Dict[str, Any]]:
    """Компактная запись гексаграммы: номер и черты, тексты берутся из таблицы при загрузке"""
    if cast is None:
        return None
    return {
        "number": cast.hexagram.number,
        "name": cast.hexagram.english_name,
        "chinese_name": cast.hexagram.chinese_name,
        "lines": [{"position": line.position, "type": line.type.value} for line in cast.lines],
        "changing_lines": list(cast.changing_lines),
    }


def deserialize_cast(data: Optional[Dict[str, Any]]) -> Optional[CastHexagram]:
    if not data:
        return None
    lines = tuple(
        HexagramLine(position=item["position"], type=item["type"], is_changing=item["type"].startswith("changing"))
        for item in data["lines"]
    )
    return CastHexagram(
        hexagram=get_hexagram_by_number(data["number"]),
        lines=lines,
        changing_lines=tuple(data.get("changing_lines") or ()),
    )


def serialize_interpretation(result: InterpretationResult) -> Dict[str, Any]:
    """Текст сохраняется как есть, структурированное толкование как JSON-строка"""
    if isinstance(result, TextInterpretation):
        content = result.content
    else:
        content = result.content.model_dump_json()
    return {
        "kind": result.kind,
        "source": result.source.value,
        "content": content,
        "model": result.model,
        "generation_time": result.generation_time,
    }


def deserialize_interpretation(data: Any) -> InterpretationResult:
    # Старые записи хранят толкование простой строкой
    if isinstance(data, str):
        data = {"kind": "text", "source": InterpretationSource.AI.value, "content": data}

    kind = data.get("kind", "text")
    common = dict(
        source=data.get("source", InterpretationSource.AI.value),
        model=data.get("model"),
        generation_time=data.get("generation_time"),
    )
    content = data.get("content", "")
    if kind in ("v1", "v2"):
        try:
            parsed = json.loads(content) if isinstance(content, str) else content
            if kind == "v2":
                return StructuredInterpretationV2(content=parsed, **common)
            return StructuredInterpretationV1(content=parsed, **common)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Не удалось разобрать сохраненное толкование ({kind}): {e}. Возвращаю как текст.")
    return TextInterpretation(content=content if isinstance(content, str) else json.dumps(content), **common)


def serialize_reading(reading: IChingReading) -> Dict[str, Any]:
    return {
        "id": reading.id,
        "user_id": reading.user_id,
        "created_at": reading.created_at.isoformat(),
        "question": reading.question,
        "casting_method": reading.casting_method.value,
        "primary_hexagram": serialize_cast(reading.primary_hexagram),
        "relating_hexagram": serialize_cast(reading.relating_hexagram),
        "interpretation": serialize_interpretation(reading.interpretation),
        "metadata": reading.metadata.model_dump(),
    }


def deserialize_reading(data: Dict[str, Any]) -> IChingReading:
    return IChingReading(
        id=data["id"],
        user_id=data["user_id"],
        created_at=datetime.fromisoformat(data["created_at"]),
        question=data["question"],
        casting_method=data["casting_method"],
        primary_hexagram=deserialize_cast(data["primary_hexagram"]),
        relating_hexagram=deserialize_cast(data.get("relating_hexagram")),
        interpretation=deserialize_interpretation(data["interpretation"]),
        metadata=ReadingMetadata(**(data.get("metadata") or {})),
    )


class IChingReadingRepository:
    """
    Гадания хранятся по ключу iching:reading:{id},
    история пользователя - список id в iching:history:{user_id}, новые первыми.
    """

    def __init__(self, store: RedisStore, history_limit: int = 50, ttl_days: int = 0):
        self.store = store
        self.history_limit = max(history_limit, 1)
        self.ttl_seconds = ttl_days * 24 * 60 * 60 if ttl_days > 0 else None

    async def save(self, reading: IChingReading, user_id: Optional[str]) -> str:
        """
        Сохранение гадания. Запись и история меняются одной транзакцией,
        записи, вытесненные из истории по лимиту, удаляются.

        :param reading: Гадание
        :param user_id: Пользователь-владелец
        :return: Идентификатор сохраненного гадания
        """
        user_id = _require_user(user_id)
        if reading.user_id != user_id:
            reading = reading.model_copy(update={"user_id": user_id})

        history_key = HISTORY_KEY.format(user_id=user_id)
        overflow = await self.store.list_range(history_key, self.history_limit - 1, -1)
        stale_keys = [READING_KEY.format(reading_id=i) for i in overflow if i != reading.id]
        payload = json.dumps(serialize_reading(reading), ensure_ascii=False)

        def queue(pipe) -> None:
            pipe.set(READING_KEY.format(reading_id=reading.id), payload, ex=self.ttl_seconds)
            pipe.lpush(history_key, reading.id)
            pipe.ltrim(history_key, 0, self.history_limit - 1)
            if stale_keys:
                pipe.delete(*stale_keys)
            if self.ttl_seconds:
                pipe.expire(history_key, self.ttl_seconds)

        await self.store.transaction(f"SAVE {reading.id}", queue)
        if stale_keys:
            logger.info(f"Из истории пользователя {user_id} вытеснено гаданий: {len(stale_keys)}")
        logger.info(f"Гадание {reading.id} пользователя {user_id} сохранено")
        return reading.id

    async def load_history(self, user_id: Optional[str], limit: Optional[int] = None) -> List[IChingReading]:
        """История гаданий пользователя, новые первыми"""
        user_id = _require_user(user_id)
        limit = min(limit or self.history_limit, self.history_limit)

        ids = await self.store.list_range(HISTORY_KEY.format(user_id=user_id), 0, limit - 1)
        records = await self.store.get_many_json([READING_KEY.format(reading_id=i) for i in ids])

        readings = []
        for reading_id, record in zip(ids, records):
            if record is None:
                continue
            try:
                readings.append(deserialize_reading(record))
            except (KeyError, ValueError, ValidationError) as e:
                logger.error(f"Не удалось восстановить гадание {reading_id}: {e}")
        return readings

    async def get(self, reading_id: str, user_id: Optional[str]) -> IChingReading:
        user_id = _require_user(user_id)
        record = await self.store.get_json(READING_KEY.format(reading_id=reading_id))
        if record is None or record.get("user_id") != user_id:
            raise ReadingNotFound(f"гадание {reading_id}")
        try:
            return deserialize_reading(record)
        except (KeyError, ValueError, ValidationError) as e:
            raise PersistenceFailure(f"Поврежденная запись гадания {reading_id}: {e}")

    async def delete(self, reading_id: str, user_id: Optional[str]) -> None:
        """Удаление гадания. Чужие и отсутствующие гадания дают ReadingNotFound."""
        user_id = _require_user(user_id)
        key = READING_KEY.format(reading_id=reading_id)
        record = await self.store.get_json(key)
        if record is None or record.get("user_id") != user_id:
            raise ReadingNotFound(f"гадание {reading_id}")

        history_key = HISTORY_KEY.format(user_id=user_id)

        def queue(pipe) -> None:
            pipe.delete(key)
            pipe.lrem(history_key, 0, reading_id)

        await self.store.transaction(f"DELETE {reading_id}", queue)
        logger.info(f"Гадание {reading_id} пользователя {user_id} удалено")
