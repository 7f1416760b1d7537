"""
Клиент для работы с OpenRouter API
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from core.exceptions import NetworkException
from core.utils import CancellationToken, run_cancellable

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """
    Клиент для работы с OpenRouter API с механизмом ротации ключей и моделей
    """

    def __init__(
        self,
        api_url: str,
        api_keys: List[str],
        models: List[str],
        model_configs: Optional[Dict[str, Dict[str, Any]]] = None,
        model_api_keys: Optional[Dict[str, str]] = None,
        timeout: int = 60
    ):
        """
        Инициализация клиента

        :param api_url: URL API OpenRouter
        :param api_keys: Список API ключей
        :param models: Список моделей
        :param model_configs: Конфигурации для моделей (опционально)
        :param model_api_keys: Соответствие моделей и их API ключей (опционально)
        :param timeout: Таймаут запроса в секундах
        """
        if not api_keys:
            raise ValueError("Список api_keys не может быть пустым для OpenRouterClient.")
        if not models:
            raise ValueError("Список models не может быть пустым для OpenRouterClient.")

        self.api_url = api_url
        self.api_keys = api_keys
        self.models = models
        self.timeout = timeout
        self.model_configs = model_configs or {}
        self.model_api_keys = model_api_keys or {}

        self.current_key_index = 0
        self.current_model_index = 0
        # Модель, сгенерировавшая последний успешный ответ
        self.last_model: Optional[str] = None

        logger.info(f"OpenRouterClient инициализирован. URL: {self.api_url}, "
                    f"ключей: {len(self.api_keys)}, моделей: {len(self.models)}, первая модель: {self.models[0]}")

    def _get_current_key(self) -> str:
        return self.api_keys[self.current_key_index]

    def _get_current_model(self) -> str:
        return self.models[self.current_model_index]

    def _get_key_for_model(self, model: str) -> str:
        """Получение API ключа для конкретной модели"""
        if self.model_api_keys.get(model):
            return self.model_api_keys[model]
        return self._get_current_key()

    def _get_model_config(self, model: str) -> Dict[str, Any]:
        return self.model_configs.get(model, {"request_type": "standard", "timeout": self.timeout})

    def _rotate_key(self) -> str:
        """Ротация API ключа"""
        self.current_key_index = (self.current_key_index + 1) % len(self.api_keys)
        logger.info(f"Ротация API ключа на индекс {self.current_key_index}")
        return self._get_current_key()

    def _rotate_model(self) -> str:
        """Ротация модели. При смене модели индекс ключа сбрасывается."""
        self.current_model_index = (self.current_model_index + 1) % len(self.models)
        self.current_key_index = 0
        logger.info(f"Ротация модели на индекс {self.current_model_index}")
        return self._get_current_model()

    def _prepare_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": "https://iching-oracle.app",
            "X-Title": "I Ching Oracle"
        }

    def _prepare_payload(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float
    ) -> Dict[str, Any]:
        """Подготовка payload в зависимости от типа запроса модели"""
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature
        }
        if self._get_model_config(model).get("request_type") != "openai":
            return payload

        payload["stop"] = None
        # Gemini не принимает системную роль
        if "gemini" in model.lower():
            payload["messages"] = [
                {"role": "user", "content": f"Инструкция: {m['content']}"} if m["role"] == "system" else m
                for m in messages
            ]
            payload["response_format"] = {"type": "text"}
        return payload

    async def make_request(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 500,
        temperature: float = 0.7,
        model: Optional[str] = None,
        retry_count: int = 3
    ) -> Dict[str, Any]:
        """
        Выполнение запроса к API OpenRouter

        :param messages: Список сообщений для модели
        :param max_tokens: Максимальное количество токенов в ответе
        :param temperature: Температура генерации
        :param model: Модель (если None, используется текущая)
        :param retry_count: Количество попыток при ошибке
        :return: Ответ API
        """
        model = model or self._get_current_model()

        for attempt in range(retry_count):
            api_key = self._get_key_for_model(model)
            last_attempt = attempt == retry_count - 1

            if attempt > 0:
                await asyncio.sleep(0.3)

            payload = self._prepare_payload(model, messages, max_tokens, temperature)
            timeout = max(self._get_model_config(model).get("timeout", self.timeout), self.timeout)
            logger.info(f"Попытка {attempt + 1}/{retry_count}: запрос к OpenRouter, модель={model}, max_tokens={max_tokens}")

            try:
                async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
                    async with session.post(self.api_url, headers=self._prepare_headers(api_key), json=payload) as response:
                        response_text = await response.text()
                        status = response.status
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Ошибка соединения с OpenRouter (модель {model}, попытка {attempt + 1}): {e}")
                if last_attempt:
                    raise NetworkException(f"Ошибка соединения с OpenRouter для модели {model}: {e}")
                self._rotate_key()
                continue

            if status == 200:
                try:
                    result = json.loads(response_text)
                except json.JSONDecodeError as e:
                    logger.error(f"Ошибка декодирования JSON (модель {model}): {e}")
                    if last_attempt:
                        raise NetworkException(f"Ошибка декодирования JSON от OpenRouter для модели {model}")
                    continue
                if not isinstance(result, dict) or not result.get("choices"):
                    logger.warning(f"Некорректный успешный ответ от OpenRouter (модель {model}): {response_text[:300]}")
                    if last_attempt:
                        raise NetworkException(f"Некорректный ответ от OpenRouter API для модели {model}")
                    continue
                return result

            logger.error(f"OpenRouter API ошибка (модель {model}, попытка {attempt + 1}): статус={status}, ответ={response_text[:300]}")
            if status in (401, 403):
                self._rotate_key()
            elif status == 404:
                model = self._rotate_model()
            elif status == 429:
                if ":free" in model:
                    model = self._rotate_model()
                else:
                    self._rotate_key()
            else:
                self._rotate_key()

            if last_attempt:
                raise NetworkException(f"Ошибка OpenRouter API после всех попыток: статус={status}, модель={model}")

        raise NetworkException(f"Не удалось выполнить запрос к модели {model} после {retry_count} попыток")

    def extract_response_text(self, response: Dict[str, Any]) -> str:
        """
        Извлечение текста ответа из ответа API

        :param response: Ответ API
        :return: Текст ответа (пустая строка, если структура ответа неожиданная)
        """
        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Ошибка при извлечении текста ответа: {e}")
            return ""
        return content or ""

    async def generate_text(
        self,
        system_message: Optional[str],
        user_message: str,
        max_tokens: int = 500,
        temperature: float = 0.7,
        model: Optional[str] = None
    ) -> str:
        """
        Генерация текста с перебором моделей

        :param system_message: Системное сообщение (опционально)
        :param user_message: Сообщение пользователя
        :param max_tokens: Максимальное количество токенов в ответе
        :param temperature: Температура генерации
        :param model: Конкретная модель для использования (опционально)
        :return: Сгенерированный текст
        """
        messages = []
        if system_message:
            messages.append({"role": "system", "content": system_message})
        messages.append({"role": "user", "content": user_message})

        current_model = model or self._get_current_model()
        attempts = 1 if model else len(self.models)

        for model_attempt in range(attempts):
            try:
                response_data = await self.make_request(
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    model=current_model,
                    retry_count=max(1, len(self.api_keys))
                )
                text = self.extract_response_text(response_data)
                if text.strip():
                    self.last_model = response_data.get("model") or current_model
                    logger.info(f"Успешно сгенерирован текст моделью {self.last_model}")
                    return text
                logger.warning(f"Модель {current_model} вернула пустой ответ")
            except NetworkException as e:
                logger.error(f"Модель {current_model} не ответила: {e.message}")

            if model_attempt < attempts - 1:
                current_model = self._rotate_model()

        raise NetworkException("Не удалось сгенерировать текст ни одной из доступных моделей")

    async def complete(
        self,
        prompt: str,
        max_output_length: int,
        temperature: float = 0.7,
        cancel_token: Optional[CancellationToken] = None
    ) -> str:
        """
        Одиночный запрос на генерацию по промпту.
        Прерывается через cancel_token (OperationCancelled).
        """
        return await run_cancellable(
            self.generate_text(
                system_message=None,
                user_message=prompt,
                max_tokens=max_output_length,
                temperature=temperature
            ),
            cancel_token
        )
