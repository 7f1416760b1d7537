"""
Источники случайных чисел для гаданий
"""
import asyncio
import json
import logging
import secrets
from typing import List, Optional

import aiohttp

from core.exceptions import RandomSourceFailure

logger = logging.getLogger(__name__)

# Верхняя граница для uint16 (значения 0..65535)
UINT16_RANGE = 1 << 16


class RandomSource:
    """
    Контракт источника энтропии: get_random(count) -> список неотрицательных целых.
    Диапазон не гарантируется, потребители сами берут остаток от деления.
    """

    # Тип источника для метаданных гадания: quantum | crypto
    kind: str = "unknown"

    async def get_random(self, count: int) -> List[int]:
        raise NotImplementedError


class CryptoRandomSource(RandomSource):
    """Криптографически стойкий генератор на базе secrets"""

    kind = "crypto"

    async def get_random(self, count: int) -> List[int]:
        if count <= 0:
            raise ValueError(f"count должен быть положительным, получено {count}")
        return [secrets.randbelow(UINT16_RANGE) for _ in range(count)]


class QuantumRandomSource(RandomSource):
    """Квантовый генератор случайных чисел (ANU QRNG)"""

    kind = "quantum"

    def __init__(self, api_url: str, api_key: str = "", timeout: int = 5):
        """
        Инициализация источника

        :param api_url: URL API квантового генератора
        :param api_key: API ключ (опционально, для платного API)
        :param timeout: Таймаут запроса в секундах
        """
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout

    def _prepare_headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def get_random(self, count: int) -> List[int]:
        if count <= 0:
            raise ValueError(f"count должен быть положительным, получено {count}")

        params = {"length": count, "type": "uint16"}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.api_url, params=params, headers=self._prepare_headers()) as response:
                    response_text = await response.text()
                    if response.status != 200:
                        raise RandomSourceFailure(
                            f"Квантовый генератор вернул статус {response.status}: {response_text[:200]}"
                        )
                    result = json.loads(response_text)
        except RandomSourceFailure:
            raise
        except json.JSONDecodeError as e:
            raise RandomSourceFailure(f"Некорректный JSON от квантового генератора: {e}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RandomSourceFailure(f"Ошибка соединения с квантовым генератором: {e}")

        if not isinstance(result, dict):
            raise RandomSourceFailure(f"Квантовый генератор вернул неожиданный ответ: {str(result)[:200]}")

        data = result.get("data")
        if not result.get("success", True) or not isinstance(data, list) or len(data) < count:
            raise RandomSourceFailure(f"Квантовый генератор вернул неполный ответ: {str(result)[:200]}")

        try:
            numbers = [int(n) for n in data[:count]]
        except (TypeError, ValueError) as e:
            raise RandomSourceFailure(f"Квантовый генератор вернул нечисловые значения: {e}")
        if any(n < 0 for n in numbers):
            raise RandomSourceFailure("Квантовый генератор вернул отрицательные значения")

        logger.info(f"Получено {count} квантовых случайных чисел")
        return numbers


class FallbackRandomSource(RandomSource):
    """
    Источник с резервом: сначала основной (квантовый), при ошибке - резервный (crypto).
    Тип последнего сработавшего источника хранится в last_source.
    """

    def __init__(self, primary: RandomSource, fallback: Optional[RandomSource] = None):
        self.primary = primary
        self.fallback = fallback or CryptoRandomSource()
        self.last_source: Optional[str] = None

    @property
    def kind(self) -> str:
        return self.last_source or self.primary.kind

    async def get_random(self, count: int) -> List[int]:
        try:
            numbers = await self.primary.get_random(count)
            self.last_source = self.primary.kind
            return numbers
        except RandomSourceFailure as e:
            logger.warning(f"Основной источник энтропии ({self.primary.kind}) недоступен: {e.message}. "
                           f"Используем резервный ({self.fallback.kind}).")

        numbers = await self.fallback.get_random(count)
        self.last_source = self.fallback.kind
        return numbers


def build_random_source(
    quantum_enabled: bool,
    api_url: str,
    api_key: str = "",
    timeout: int = 5
) -> RandomSource:
    """Сборка источника энтропии по настройкам приложения"""
    if not quantum_enabled:
        logger.info("Квантовый генератор отключен, используется криптографический источник")
        return CryptoRandomSource()
    return FallbackRandomSource(QuantumRandomSource(api_url, api_key=api_key, timeout=timeout))
