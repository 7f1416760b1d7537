"""
Сервис толкования гексаграмм через OpenRouter
"""
import logging
import time
from typing import Any, Dict, Optional

from core.exceptions import (
    InterpretationServiceFailure,
    InterpretationValidationFailure,
    NetworkException,
    OperationCancelled,
)
from core.openrouter_client import OpenRouterClient
from core.utils import CancellationToken
from modules.iching.fallback import construct_static_interpretation, construct_static_interpretation_v1
from modules.iching.models import (
    CastHexagram,
    InterpretationResult,
    InterpretationSchema,
    InterpretationSource,
    StructuredInterpretationV1,
    StructuredInterpretationV2,
    TextInterpretation,
)
from modules.iching.prompts import PROMPT_BUILDERS, build_request_context, max_tokens_for
from modules.iching.validation import Invalid, parse_structured_response, validate_text_response

logger = logging.getLogger(__name__)


class IChingOpenRouterService:
    """Конвейер толкования: промпт -> генерация -> проверка -> статический резерв"""

    def __init__(
        self,
        openrouter_client: Optional[OpenRouterClient],
        prompts_config: Dict[str, Dict[str, Any]],
        default_style: str = "psychological",
        default_detail_level: str = "detailed",
        default_schema: str = "v2",
        min_response_length: int = 100,
        max_response_length: int = 10000,
    ):
        """
        Инициализация сервиса

        :param openrouter_client: Клиент OpenRouter (None - только статические толкования)
        :param prompts_config: Ограничения токенов и температура по уровням детализации
        :param default_style: Стиль толкования по умолчанию
        :param default_detail_level: Уровень детализации по умолчанию
        :param default_schema: Формат ответа по умолчанию (text, v1, v2)
        """
        self.openrouter_client = openrouter_client
        self.prompts_config = prompts_config
        self.default_style = default_style
        self.default_detail_level = default_detail_level
        self.default_schema = InterpretationSchema(default_schema)
        self.min_response_length = min_response_length
        self.max_response_length = max_response_length

    async def interpret(
        self,
        question: str,
        primary: CastHexagram,
        relating: Optional[CastHexagram] = None,
        *,
        detail_level: Optional[str] = None,
        style: Optional[str] = None,
        schema: Optional[InterpretationSchema] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> InterpretationResult:
        """
        Толкование гексаграммы. Никогда не выбрасывает исключений:
        при любой ошибке возвращается статическое толкование (source='static').
        """
        schema = InterpretationSchema(schema) if schema else self.default_schema
        started = time.monotonic()
        try:
            return await self._interpret_with_ai(
                question, primary, relating,
                detail_level=detail_level, style=style, schema=schema,
                cancel_token=cancel_token, started=started
            )
        except InterpretationValidationFailure as e:
            logger.warning(f"Ответ модели не прошел проверку: {e.message}; причины: {e.reasons}")
        except InterpretationServiceFailure as e:
            logger.warning(f"Сервис генерации недоступен, используем статическое толкование: {e.message}")
        except Exception as e:
            logger.error(f"Непредвиденная ошибка при толковании: {str(e)}", exc_info=True)

        return self.static_interpretation(question, primary, relating, schema, started)

    async def _interpret_with_ai(self, question, primary, relating, *, detail_level, style, schema,
                                 cancel_token, started) -> InterpretationResult:
        if self.openrouter_client is None:
            raise InterpretationServiceFailure("Клиент OpenRouter не настроен")

        ctx = build_request_context(
            question, primary, relating,
            style=style or self.default_style,
            detail_level=detail_level or self.default_detail_level,
        )
        prompt = PROMPT_BUILDERS[schema](ctx)
        max_tokens = max_tokens_for(schema, ctx.detail_level, self.prompts_config)
        temperature = self.prompts_config.get(ctx.detail_level.value, {}).get("temperature", 0.7)

        logger.info(f"Запрос толкования гексаграммы {primary.hexagram.number}: формат={schema.value}, "
                    f"стиль={ctx.style.value}, детализация={ctx.detail_level.value}, max_tokens={max_tokens}")
        try:
            text = await self.openrouter_client.complete(
                prompt, max_tokens, temperature=temperature, cancel_token=cancel_token
            )
        except OperationCancelled as e:
            logger.info(f"Запрос толкования прерван: {e.message}")
            raise InterpretationServiceFailure(f"Запрос прерван: {e.message}")
        except NetworkException as e:
            raise InterpretationServiceFailure(f"Ошибка сети: {e.message}")

        if not text or not text.strip():
            raise InterpretationServiceFailure("Модель вернула пустой ответ")

        model = getattr(self.openrouter_client, "last_model", None)
        generation_time = round(time.monotonic() - started, 3)

        if schema == InterpretationSchema.TEXT:
            checked = validate_text_response(text, self.min_response_length, self.max_response_length)
        else:
            checked = parse_structured_response(text)
        if isinstance(checked, Invalid):
            raise InterpretationValidationFailure("Ответ модели некорректен", checked.reasons)

        common = dict(source=InterpretationSource.AI, model=model, generation_time=generation_time)
        if checked.schema_version == InterpretationSchema.V2:
            return StructuredInterpretationV2(content=checked.value, **common)
        if checked.schema_version == InterpretationSchema.V1:
            return StructuredInterpretationV1(content=checked.value, **common)
        return TextInterpretation(content=checked.value, **common)

    def static_interpretation(
        self,
        question: str,
        primary: CastHexagram,
        relating: Optional[CastHexagram] = None,
        schema: Optional[InterpretationSchema] = None,
        started: Optional[float] = None
    ) -> InterpretationResult:
        """Детерминированное толкование по таблице гексаграмм"""
        generation_time = round(time.monotonic() - started, 3) if started is not None else None
        if schema == InterpretationSchema.V1:
            return StructuredInterpretationV1(
                source=InterpretationSource.STATIC,
                content=construct_static_interpretation_v1(question, primary, relating),
                generation_time=generation_time,
            )
        return TextInterpretation(
            source=InterpretationSource.STATIC,
            content=construct_static_interpretation(question, primary, relating),
            generation_time=generation_time,
        )
