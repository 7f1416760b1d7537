"""
Сервис гаданий по Книге Перемен
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from core.exceptions import PersistenceFailure, SessionStateError
from core.random_source import RandomSource
from core.utils import now_ms
from modules.iching import casting
from modules.iching.hexagrams import get_all_hexagrams, get_hexagram_by_number
from modules.iching.models import (
    ApiResponse,
    CastHexagram,
    CastLinesRequest,
    CastingMethod,
    IChingReading,
    InterpretationOptions,
    InterpretationResult,
    InterpretRequest,
    RandomHexagramResponse,
    ReadingMetadata,
    SaveReadingRequest,
    SessionStep,
)
from modules.iching.openrouter_service import IChingOpenRouterService
from modules.iching.repository import IChingReadingRepository
from modules.iching.session import SessionRegistry
from modules.iching.transformation import cast_hexagrams
from modules.iching.trigrams import TRIGRAMS

logger = logging.getLogger(__name__)

QUANTUM_SOURCE_KINDS = ("quantum", "crypto")


def format_reading_text(primary: CastHexagram, relating: Optional[CastHexagram] = None) -> str:
    """
    Форматирование гадания для отображения в Telegram (Markdown)

    :param primary: Основная гексаграмма
    :param relating: Производная гексаграмма
    :return: Отформатированный текст
    """
    hexagram = primary.hexagram
    upper, lower = hexagram.upper_trigram, hexagram.lower_trigram
    result = [
        f"*{hexagram.number}. {hexagram.english_name}* ({hexagram.chinese_name} {hexagram.pinyin_name})",
        hexagram.meaning,
        "",
        "\n".join(casting.get_line_symbol(line.type) for line in reversed(primary.lines)),
        "",
        f"*СУЖДЕНИЕ:* {hexagram.judgment}",
        "",
        f"*ОБРАЗ:* {hexagram.image}",
        "",
        f"*ТРИГРАММЫ:* {upper.symbol} {upper.english_name} ({upper.attribute}) над "
        f"{lower.symbol} {lower.english_name} ({lower.attribute})",
        "",
        f"*КЛЮЧЕВЫЕ СЛОВА:* {', '.join(hexagram.keywords)}",
    ]
    if primary.changing_lines:
        result.append("")
        result.append("*ИЗМЕНЯЮЩИЕСЯ ЧЕРТЫ:*")
        result.extend(f"• {casting.get_line_position_name(pos)}" for pos in primary.changing_lines)
    if relating is not None:
        target = relating.hexagram
        result.append("")
        result.append(f"*ПРОИЗВОДНАЯ ГЕКСАГРАММА:* {target.number}. {target.english_name} "
                      f"({target.chinese_name}) - {target.meaning}")
    return "\n".join(result)


class IChingService:
    """Сервис гаданий: броски, сессии, толкования и история"""

    def __init__(
        self,
        random_source: RandomSource,
        interpreter: IChingOpenRouterService,
        repository: IChingReadingRepository,
        sessions: SessionRegistry,
    ):
        """
        Инициализация сервиса

        :param random_source: Источник случайных чисел
        :param interpreter: Конвейер толкования
        :param repository: Хранилище гаданий
        :param sessions: Реестр сессий гадания
        """
        self.random_source = random_source
        self.interpreter = interpreter
        self.repository = repository
        self.sessions = sessions

    def _source_kind(self) -> Optional[str]:
        kind = getattr(self.random_source, "kind", None)
        return kind if kind in QUANTUM_SOURCE_KINDS else None

    # ------------------------------------------------------------------
    # Справочники
    # ------------------------------------------------------------------

    def list_trigrams(self) -> ApiResponse:
        return ApiResponse(success=True, data=list(TRIGRAMS))

    def list_hexagrams(self) -> ApiResponse:
        return ApiResponse(success=True, data=get_all_hexagrams())

    def get_hexagram(self, number: int) -> ApiResponse:
        try:
            return ApiResponse(success=True, data=get_hexagram_by_number(number))
        except ValueError as e:
            return ApiResponse(success=False, error=str(e))

    # ------------------------------------------------------------------
    # Разовые операции
    # ------------------------------------------------------------------

    async def cast(self, method: CastingMethod) -> ApiResponse:
        """Бросок гексаграммы целиком: один запрос к источнику энтропии"""
        numbers = await casting.prefetch_entropy(method, self.random_source)
        lines = casting.lines_from_entropy(method, numbers)
        primary, relating = cast_hexagrams(lines)
        coin_tosses = casting.coin_tosses_from_entropy(numbers) if method == CastingMethod.THREE_COINS else []

        logger.info(f"Выпала гексаграмма {primary.hexagram.number}"
                    + (f" -> {relating.hexagram.number}" if relating else ""))
        return ApiResponse(success=True, data={
            "casting_method": method,
            "primary_hexagram": primary,
            "relating_hexagram": relating,
            "coin_tosses": coin_tosses,
            "quantum_source": self._source_kind(),
        })

    @staticmethod
    def _cast_from_request(request: CastLinesRequest):
        """Основная и производная гексаграммы по чертам клиента, записи берутся из таблицы"""
        return cast_hexagrams([casting.make_line(line.position, line.type) for line in request.lines])

    async def interpret(self, request: InterpretRequest) -> ApiResponse:
        primary, relating = self._cast_from_request(request)
        result = await self.interpreter.interpret(
            request.question,
            primary,
            relating,
            detail_level=request.detail_level,
            style=request.style,
            schema=request.schema_version,
        )
        return ApiResponse(success=True, data=result)

    async def random_reading(self, method: CastingMethod = CastingMethod.THREE_COINS) -> ApiResponse:
        """Быстрое гадание без вопроса: бросок и текст для Telegram"""
        lines = await casting.cast_all_lines(method, self.random_source)
        primary, relating = cast_hexagrams(lines)
        hexagram = primary.hexagram
        return ApiResponse(success=True, data=RandomHexagramResponse(
            number=hexagram.number,
            title=f"{hexagram.english_name} ({hexagram.chinese_name})",
            description=hexagram.meaning,
            primary_hexagram=primary,
            relating_hexagram=relating,
            formatted_text=format_reading_text(primary, relating),
            quantum_source=self._source_kind(),
        ))

    # ------------------------------------------------------------------
    # Сессии гадания
    # ------------------------------------------------------------------

    def start_session(self, user_id: Optional[str], method: CastingMethod) -> ApiResponse:
        session = self.sessions.start(user_id, method)
        return ApiResponse(success=True, data=session.snapshot())

    def get_session(self, user_id: Optional[str]) -> ApiResponse:
        return ApiResponse(success=True, data=self.sessions.require(user_id).snapshot())

    def submit_question(self, user_id: Optional[str], question: str) -> ApiResponse:
        session = self.sessions.require(user_id)
        session.submit_question(question)
        return ApiResponse(success=True, data=session.snapshot())

    async def load_entropy(self, user_id: Optional[str]) -> ApiResponse:
        session = self.sessions.require(user_id)
        await session.load_entropy(self.random_source)
        return ApiResponse(success=True, data=session.snapshot())

    def cast_lines(self, user_id: Optional[str], count: Optional[int] = None) -> ApiResponse:
        """Бросок следующей черты (count=1) или всех оставшихся (count=None)"""
        session = self.sessions.require(user_id)
        if count is None:
            session.cast_remaining_lines()
        else:
            if count < 1:
                raise SessionStateError("Количество черт должно быть положительным")
            for _ in range(count):
                session.cast_next_line()
                if session.step != SessionStep.CASTING:
                    break
        return ApiResponse(success=True, data=session.snapshot())

    async def request_interpretation(self, user_id: Optional[str],
                                     options: Optional[InterpretationOptions] = None) -> ApiResponse:
        session = self.sessions.require(user_id)
        options = options or InterpretationOptions()
        result = await session.request_interpretation(
            self.interpreter,
            detail_level=options.detail_level,
            style=options.style,
            schema=options.schema_version,
        )
        if result is None:
            return ApiResponse(success=False, error="Сессия закрыта во время толкования")
        return ApiResponse(success=True, data=session.snapshot())

    def retry_session(self, user_id: Optional[str]) -> ApiResponse:
        session = self.sessions.require(user_id)
        session.retry()
        return ApiResponse(success=True, data=session.snapshot())

    def teardown_session(self, user_id: Optional[str]) -> ApiResponse:
        discarded = self.sessions.discard(user_id)
        return ApiResponse(success=True, data={"discarded": discarded})

    async def save_session(self, user_id: Optional[str]) -> ApiResponse:
        """Сохранение завершенной сессии в историю"""
        session = self.sessions.require(user_id)
        if session.step != SessionStep.COMPLETE:
            raise SessionStateError("Сохранить можно только завершенное гадание")
        if session.saved_reading_id:
            return ApiResponse(success=True, data={"id": session.saved_reading_id, "persisted": True})

        reading = self._build_reading(
            session.user_id,
            question=session.question,
            casting_method=session.casting_method,
            primary=session.primary_hexagram,
            relating=session.relating_hexagram,
            interpretation=session.interpretation,
            metadata=self._metadata(session.interpretation, session.random_source_kind),
        )
        response = await self.save_reading(user_id, reading)
        if response.data.get("persisted"):
            session.saved_reading_id = response.data["id"]
        return response

    # ------------------------------------------------------------------
    # История гаданий
    # ------------------------------------------------------------------

    @staticmethod
    def _metadata(interpretation: InterpretationResult, source_kind: Optional[str]) -> ReadingMetadata:
        return ReadingMetadata(
            generation_time=interpretation.generation_time,
            model=interpretation.model,
            quantum_source=source_kind if source_kind in QUANTUM_SOURCE_KINDS else None,
        )

    @staticmethod
    def _build_reading(user_id: Optional[str], *, question: str, casting_method: CastingMethod,
                       primary: CastHexagram, relating: Optional[CastHexagram],
                       interpretation: InterpretationResult, metadata: ReadingMetadata) -> IChingReading:
        return IChingReading(
            id=str(uuid.uuid4()),
            user_id=user_id or "",
            question=question,
            casting_method=casting_method,
            primary_hexagram=primary,
            relating_hexagram=relating,
            interpretation=interpretation,
            metadata=metadata,
        )

    def reading_from_request(self, user_id: Optional[str], request: SaveReadingRequest) -> IChingReading:
        metadata = request.metadata
        if metadata.generation_time is None and metadata.model is None:
            metadata = metadata.model_copy(update={
                "generation_time": request.interpretation.generation_time,
                "model": request.interpretation.model,
            })
        primary, relating = self._cast_from_request(request)
        return self._build_reading(
            user_id,
            question=request.question,
            casting_method=request.casting_method,
            primary=primary,
            relating=relating,
            interpretation=request.interpretation,
            metadata=metadata,
        )

    async def save_reading(self, user_id: Optional[str], reading: IChingReading) -> ApiResponse:
        """
        Сохранение гадания. При ошибке хранилища гадание остается доступным
        под локальным идентификатором local-<мс>.
        """
        try:
            reading_id = await self.repository.save(reading, user_id)
            persisted = True
        except PersistenceFailure as e:
            reading_id = f"local-{now_ms()}"
            persisted = False
            logger.error(f"Не удалось сохранить гадание пользователя {user_id}: {e.message}. "
                         f"Используется локальный идентификатор {reading_id}")

        saved = reading.model_copy(update={"id": reading_id, "user_id": user_id})
        return ApiResponse(success=True, data={"id": reading_id, "persisted": persisted, "reading": saved})

    async def load_history(self, user_id: Optional[str], limit: Optional[int] = None) -> ApiResponse:
        readings: List[IChingReading] = await self.repository.load_history(user_id, limit)
        return ApiResponse(success=True, data=readings)

    async def delete_reading(self, user_id: Optional[str], reading_id: str) -> ApiResponse:
        await self.repository.delete(reading_id, user_id)
        return ApiResponse(success=True, data={"id": reading_id, "deleted": True})

    def status(self) -> Dict[str, Any]:
        return {
            "active_sessions": len(self.sessions),
            "random_source": getattr(self.random_source, "kind", "unknown"),
            "ai_enabled": self.interpreter.openrouter_client is not None,
        }
