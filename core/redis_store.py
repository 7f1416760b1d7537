"""
Хранилище на базе Redis
"""
import json
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from core.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RedisStore:
    """Асинхронное хранилище JSON-значений и списков в Redis"""

    def __init__(self, redis_url: str, client: Optional[aioredis.Redis] = None):
        """
        Инициализация хранилища

        :param redis_url: URL подключения к Redis
        :param client: Готовый клиент (если передан, connect() его не пересоздает)
        """
        self.redis_url = redis_url
        self.redis: Optional[aioredis.Redis] = client
        self._external_client = client is not None

    async def connect(self) -> bool:
        """Подключение к Redis. Возвращает True, если ping прошел."""
        if self.redis is not None and not self._external_client:
            await self.close()
        if not self._external_client:
            self.redis = aioredis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)

        try:
            await self.redis.ping()
        except RedisError as e:
            logger.critical(f"НЕ УДАЛОСЬ ПОДКЛЮЧИТЬСЯ К REDIS по адресу {self.redis_url}: {e}")
            if not self._external_client:
                self.redis = None
            return False

        logger.info(f"Успешно подключено к Redis по адресу: {self.redis_url}")
        return True

    async def close(self) -> None:
        """Закрывает соединение с Redis."""
        if self.redis is not None and not self._external_client:
            await self.redis.aclose()
            self.redis = None
            logger.info("Соединение с Redis закрыто.")

    @property
    def connected(self) -> bool:
        return self.redis is not None

    async def _execute(self, operation: str, call: Callable[[aioredis.Redis], Awaitable[T]]) -> T:
        """Выполнение команды с одной попыткой переподключения при обрыве соединения"""
        if self.redis is None:
            logger.error(f"Redis не подключен ({operation}). Пробуем переподключиться...")
            if not await self.connect():
                raise PersistenceFailure("Хранилище недоступно")

        try:
            return await call(self.redis)
        except RedisConnectionError as e:
            logger.error(f"Ошибка соединения с Redis при {operation}: {e}. Пробуем переподключиться...")
            if not await self.connect():
                raise PersistenceFailure(f"Хранилище недоступно: {e}")
        except RedisError as e:
            logger.error(f"Ошибка Redis при {operation}: {e}", exc_info=True)
            raise PersistenceFailure(f"Ошибка хранилища: {e}")

        try:
            return await call(self.redis)
        except RedisError as e:
            logger.error(f"Повторная ошибка Redis при {operation}: {e}", exc_info=True)
            raise PersistenceFailure(f"Ошибка хранилища: {e}")

    async def ping(self) -> bool:
        try:
            return bool(await self._execute("PING", lambda r: r.ping()))
        except PersistenceFailure:
            return False

    async def get_json(self, key: str) -> Optional[Any]:
        """
        Получение JSON-значения

        :param key: Ключ
        :return: Десериализованное значение или None (нет ключа или поврежденные данные)
        """
        raw = await self._execute(f"GET {key}", lambda r: r.get(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Поврежденные данные для ключа {key}: {e}. Удаляю запись.")
            await self.delete(key)
            return None

    async def get_many_json(self, keys: List[str]) -> List[Optional[Any]]:
        if not keys:
            return []
        raws = await self._execute("MGET", lambda r: r.mget(keys))
        values = []
        for key, raw in zip(keys, raws):
            if raw is None:
                values.append(None)
                continue
            try:
                values.append(json.loads(raw))
            except json.JSONDecodeError as e:
                logger.error(f"Поврежденные данные для ключа {key}: {e}")
                values.append(None)
        return values

    async def delete(self, key: str) -> int:
        return await self._execute(f"DEL {key}", lambda r: r.delete(key))

    async def transaction(self, operation: str, queue: Callable[[Any], None]) -> List[Any]:
        """
        Выполнение нескольких команд одной транзакцией MULTI/EXEC

        :param operation: Название операции для логов
        :param queue: Функция, ставящая команды в очередь pipeline
        :return: Результаты команд
        """
        async def call(redis: aioredis.Redis) -> List[Any]:
            async with redis.pipeline(transaction=True) as pipe:
                queue(pipe)
                return await pipe.execute()

        return await self._execute(operation, call)

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> List[str]:
        return await self._execute(f"LRANGE {key}", lambda r: r.lrange(key, start, stop))
