"""
Сессия гадания: конечный автомат question -> loading -> casting -> interpretation -> complete
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from core.exceptions import (
    AuthenticationRequired,
    InvalidQuestion,
    OracleException,
    RandomSourceFailure,
    SessionStateError,
)
from core.random_source import RandomSource
from core.utils import CancellationToken
from modules.iching import casting
from modules.iching.models import (
    CastHexagram,
    CastingMethod,
    CoinToss,
    HexagramLine,
    SessionSnapshot,
    SessionStep,
)
from modules.iching.transformation import build_primary, derive_relating

logger = logging.getLogger(__name__)

MIN_QUESTION_LENGTH = 3


class ReadingSession:
    """
    Одна сессия гадания пользователя.
    Состояние меняется только методами перехода, недопустимые переходы дают SessionStateError.
    """

    def __init__(self, user_id: str, casting_method: CastingMethod = CastingMethod.THREE_COINS,
                 min_question_length: int = MIN_QUESTION_LENGTH):
        self.id = str(uuid.uuid4())
        self.user_id = user_id
        self.started_at = datetime.now()
        self.casting_method = CastingMethod(casting_method)
        self.min_question_length = min_question_length

        self.step = SessionStep.QUESTION
        self.question = ""
        self.cast_lines: List[HexagramLine] = []
        self.coin_tosses: List[CoinToss] = []
        self.primary_hexagram: Optional[CastHexagram] = None
        self.relating_hexagram: Optional[CastHexagram] = None
        self.interpretation = None
        self.error: Optional[str] = None
        self.failed_step: Optional[SessionStep] = None
        self.random_source_kind: Optional[str] = None
        self.saved_reading_id: Optional[str] = None

        self.torn_down = False
        self.interpreting = False
        self.cancel_token = CancellationToken()
        self._entropy: List[int] = []

    def _require_step(self, *steps: SessionStep) -> None:
        if self.torn_down:
            raise SessionStateError("Сессия закрыта")
        if self.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise SessionStateError(f"Действие недоступно на шаге '{self.step.value}' (ожидается: {allowed})")

    def submit_question(self, text: str) -> None:
        """
        Ввод вопроса. Пустой или слишком короткий вопрос отклоняется, шаг не меняется.
        """
        self._require_step(SessionStep.QUESTION)
        question = (text or "").strip()
        if len(question) < self.min_question_length:
            raise InvalidQuestion(f"Вопрос должен содержать не менее {self.min_question_length} символов")
        self.question = question

    async def load_entropy(self, random_source: RandomSource) -> None:
        """
        Получение всех случайных чисел для гексаграммы одним запросом.
        При ошибке источника сессия переходит в error, исключение пробрасывается.
        """
        self._require_step(SessionStep.QUESTION)
        if not self.question:
            raise SessionStateError("Сначала нужно задать вопрос")

        self.step = SessionStep.LOADING
        try:
            numbers = await casting.prefetch_entropy(self.casting_method, random_source)
        except RandomSourceFailure as e:
            if self.torn_down:
                raise
            self._fail(SessionStep.QUESTION, e)
            raise

        if self.torn_down:
            return

        self._entropy = numbers
        self.random_source_kind = getattr(random_source, "kind", None)
        if self.casting_method == CastingMethod.THREE_COINS:
            self.coin_tosses = casting.coin_tosses_from_entropy(numbers)
        self.step = SessionStep.CASTING
        logger.info(f"Сессия {self.id}: энтропия получена ({self.random_source_kind})")

    def cast_next_line(self) -> HexagramLine:
        """Следующая черта из заранее полученных чисел, позиции строго 1..6"""
        self._require_step(SessionStep.CASTING)
        position = len(self.cast_lines) + 1
        numbers = casting.entropy_slice(self.casting_method, self._entropy, position)
        line = casting.line_from_entropy(self.casting_method, position, numbers)
        self.cast_lines.append(line)

        if len(self.cast_lines) == casting.LINES_PER_HEXAGRAM:
            self.primary_hexagram = build_primary(self.cast_lines)
            self.relating_hexagram = derive_relating(self.cast_lines)
            self.step = SessionStep.INTERPRETATION
            logger.info(
                f"Сессия {self.id}: выпала гексаграмма {self.primary_hexagram.hexagram.number}"
                + (f" -> {self.relating_hexagram.hexagram.number}" if self.relating_hexagram else "")
            )
        return line

    def cast_remaining_lines(self) -> List[HexagramLine]:
        self._require_step(SessionStep.CASTING)
        new_lines = []
        while self.step == SessionStep.CASTING:
            new_lines.append(self.cast_next_line())
        return new_lines

    async def request_interpretation(self, pipeline, **options):
        """
        Запрос толкования у конвейера интерпретации (он не выбрасывает исключений).

        :param pipeline: Объект с методом interpret(question, primary, relating, ...)
        :param options: detail_level, style, schema
        :return: Результат толкования или None, если сессия была закрыта во время ожидания
        """
        self._require_step(SessionStep.INTERPRETATION)
        if len(self.cast_lines) != casting.LINES_PER_HEXAGRAM or self.primary_hexagram is None:
            raise SessionStateError("Толкование доступно только после шести черт")
        if self.interpreting:
            raise SessionStateError("Толкование уже запрошено")

        self.interpreting = True
        try:
            result = await pipeline.interpret(
                self.question,
                self.primary_hexagram,
                self.relating_hexagram,
                cancel_token=self.cancel_token,
                **options
            )
        except OracleException as e:
            if self.torn_down:
                return None
            self._fail(SessionStep.INTERPRETATION, e)
            raise
        finally:
            self.interpreting = False

        if self.torn_down:
            logger.info(f"Сессия {self.id} закрыта во время толкования, результат отброшен")
            return None

        self.interpretation = result
        self.step = SessionStep.COMPLETE
        return result

    def retry(self) -> None:
        """Повтор после ошибки: возврат на шаг, который завершился неудачей"""
        self._require_step(SessionStep.ERROR)
        self.step = self.failed_step or SessionStep.QUESTION
        self.error = None
        self.failed_step = None
        logger.info(f"Сессия {self.id}: повтор с шага '{self.step.value}'")

    def teardown(self) -> None:
        """Закрытие сессии на любом шаге. Активный запрос толкования прерывается."""
        if self.torn_down:
            return
        self.torn_down = True
        self.cancel_token.cancel("сессия закрыта")
        logger.info(f"Сессия {self.id} закрыта на шаге '{self.step.value}'")

    def _fail(self, failed_step: SessionStep, exc: OracleException) -> None:
        self.step = SessionStep.ERROR
        self.failed_step = failed_step
        self.error = f"{type(exc).__name__}: {exc.message}"
        logger.warning(f"Сессия {self.id} перешла в состояние ошибки: {self.error}")

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            id=self.id,
            user_id=self.user_id,
            started_at=self.started_at,
            step=self.step,
            question=self.question,
            casting_method=self.casting_method,
            cast_lines=list(self.cast_lines),
            coin_tosses=list(self.coin_tosses[:len(self.cast_lines)]),
            primary_hexagram=self.primary_hexagram,
            relating_hexagram=self.relating_hexagram,
            interpretation=self.interpretation,
            error=self.error,
            random_source_kind=self.random_source_kind,
            saved_reading_id=self.saved_reading_id,
        )


class SessionRegistry:
    """Не более одной активной сессии на пользователя"""

    def __init__(self, ttl_minutes: int = 30, min_question_length: int = MIN_QUESTION_LENGTH):
        self.ttl = timedelta(minutes=ttl_minutes) if ttl_minutes > 0 else None
        self.min_question_length = min_question_length
        self._sessions: Dict[str, ReadingSession] = {}

    @staticmethod
    def _check_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise AuthenticationRequired("не указан пользователь")
        return user_id

    def start(self, user_id: Optional[str], casting_method: CastingMethod = CastingMethod.THREE_COINS) -> ReadingSession:
        """Новая сессия; предыдущая сессия пользователя закрывается"""
        user_id = self._check_user(user_id)
        self.discard(user_id)
        self.sweep_expired()
        session = ReadingSession(user_id, casting_method, min_question_length=self.min_question_length)
        self._sessions[user_id] = session
        logger.info(f"Пользователь {user_id} начал сессию {session.id} ({session.casting_method.value})")
        return session

    def get(self, user_id: Optional[str]) -> Optional[ReadingSession]:
        user_id = self._check_user(user_id)
        session = self._sessions.get(user_id)
        if session is not None and self._expired(session, datetime.now()):
            logger.info(f"Сессия {session.id} устарела и будет закрыта")
            self.discard(user_id)
            return None
        return session

    def _expired(self, session: ReadingSession, now: datetime) -> bool:
        return self.ttl is not None and now - session.started_at > self.ttl

    def sweep_expired(self) -> int:
        """Закрытие всех устаревших сессий, возвращает их количество"""
        now = datetime.now()
        expired = [user_id for user_id, session in self._sessions.items() if self._expired(session, now)]
        for user_id in expired:
            self.discard(user_id)
        if expired:
            logger.info(f"Закрыто устаревших сессий: {len(expired)}")
        return len(expired)

    def require(self, user_id: Optional[str]) -> ReadingSession:
        session = self.get(user_id)
        if session is None:
            raise SessionStateError("Нет активной сессии гадания")
        return session

    def discard(self, user_id: Optional[str]) -> bool:
        user_id = self._check_user(user_id)
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.teardown()
        return True

    def close_all(self) -> None:
        for user_id in list(self._sessions):
            self.discard(user_id)

    def __len__(self) -> int:
        return len(self._sessions)
