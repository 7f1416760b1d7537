"""
Модели данных для модуля Книги Перемен (И-Цзин)
"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LineType(str, Enum):
    """Тип черты гексаграммы"""
    YIN = "yin"
    YANG = "yang"
    CHANGING_YIN = "changing-yin"
    CHANGING_YANG = "changing-yang"

    @property
    def is_yang(self) -> bool:
        return self in (LineType.YANG, LineType.CHANGING_YANG)

    @property
    def is_changing(self) -> bool:
        return self in (LineType.CHANGING_YIN, LineType.CHANGING_YANG)


class CastingMethod(str, Enum):
    """Метод гадания"""
    THREE_COINS = "three-coins"
    YARROW_STALKS = "yarrow-stalks"


class SessionStep(str, Enum):
    """Шаги сессии гадания"""
    QUESTION = "question"
    LOADING = "loading"
    CASTING = "casting"
    INTERPRETATION = "interpretation"
    COMPLETE = "complete"
    ERROR = "error"


class InterpretationSource(str, Enum):
    AI = "ai"
    STATIC = "static"


class DetailLevel(str, Enum):
    CONCISE = "concise"
    DETAILED = "detailed"
    COMPREHENSIVE = "comprehensive"


class InterpretationStyle(str, Enum):
    TRADITIONAL = "traditional"
    PSYCHOLOGICAL = "psychological"
    SPIRITUAL = "spiritual"
    PRACTICAL = "practical"


class InterpretationSchema(str, Enum):
    """Формат ответа, запрашиваемый у сервиса генерации"""
    TEXT = "text"
    V1 = "v1"
    V2 = "v2"


class HexagramLine(BaseModel):
    """Черта гексаграммы. Позиции считаются снизу вверх (1-6)"""
    model_config = ConfigDict(frozen=True)

    position: int = Field(..., ge=1, le=6, description="Позиция черты (1 - нижняя)")
    type: LineType = Field(..., description="Тип черты")
    is_changing: bool = Field(..., description="Признак изменяющейся черты")


class CoinToss(BaseModel):
    """Результат броска трех монет"""
    model_config = ConfigDict(frozen=True)

    coins: Tuple[bool, bool, bool] = Field(..., description="true - орел (ян)")
    line_type: LineType
    value: int = Field(..., description="Сумма броска: 6, 7, 8 или 9")


class Trigram(BaseModel):
    """Одна из 8 триграмм"""
    model_config = ConfigDict(frozen=True)

    id: str
    chinese_name: str
    english_name: str
    lines: Tuple[bool, bool, bool] = Field(..., description="Черты снизу вверх, true - ян")
    element: str
    attribute: str
    family: str
    direction: str
    symbol: str


class Hexagram(BaseModel):
    """Одна из 64 гексаграмм"""
    model_config = ConfigDict(frozen=True)

    number: int = Field(..., ge=1, le=64)
    chinese_name: str
    pinyin_name: str
    english_name: str
    lines: Tuple[bool, bool, bool, bool, bool, bool] = Field(..., description="Черты снизу вверх, true - ян")
    upper_trigram: Trigram
    lower_trigram: Trigram
    judgment: str
    image: str
    meaning: str
    keywords: Tuple[str, ...]


class CastHexagram(BaseModel):
    """Выпавшая гексаграмма вместе с чертами"""
    model_config = ConfigDict(frozen=True)

    hexagram: Hexagram
    lines: Tuple[HexagramLine, ...]
    changing_lines: Tuple[int, ...] = Field(default=(), description="Позиции изменяющихся черт (1-6)")


# ---------------------------------------------------------------------------
# Структурированные толкования
# ---------------------------------------------------------------------------

class InterpretationV1Body(BaseModel):
    overview: str
    present_situation: str
    trigram_dynamics: str
    changing_lines: Optional[str] = None
    transformation: Optional[str] = None
    guidance: str
    timing: str
    key_insight: str


class InterpretationV1(BaseModel):
    """Структурированное толкование (формат V1)"""
    interpretation: InterpretationV1Body
    tone: Literal["warm", "wise", "encouraging", "cautionary"]
    confidence: Literal["high", "medium", "low"]


class TrigramDynamics(BaseModel):
    interaction: str
    upperMeaning: str
    lowerMeaning: str


class ChangingLinesSection(BaseModel):
    present: str
    significance: str


class TransformationSection(BaseModel):
    journey: str
    futureState: str


class GuidanceSection(BaseModel):
    wisdom: str
    rightAction: List[str]
    toEmbody: List[str]
    toAvoid: List[str]


class TimingSection(BaseModel):
    nature: str
    whenToAct: str
    whenToWait: str


class InterpretationV2(BaseModel):
    """Структурированное толкование (формат V2)"""
    title: str
    summary: str
    tone: Literal["Contemplative", "Dynamic", "Cautionary", "Auspicious"]
    overview: str
    presentSituation: str
    trigramDynamics: TrigramDynamics
    changingLines: ChangingLinesSection
    transformation: TransformationSection
    guidance: GuidanceSection
    timing: TimingSection
    keyInsight: str
    reflectionPrompts: List[str]
    conclusion: str


class TextInterpretation(BaseModel):
    kind: Literal["text"] = "text"
    source: InterpretationSource
    content: str
    model: Optional[str] = None
    generation_time: Optional[float] = None


class StructuredInterpretationV1(BaseModel):
    kind: Literal["v1"] = "v1"
    source: InterpretationSource
    content: InterpretationV1
    model: Optional[str] = None
    generation_time: Optional[float] = None


class StructuredInterpretationV2(BaseModel):
    kind: Literal["v2"] = "v2"
    source: InterpretationSource
    content: InterpretationV2
    model: Optional[str] = None
    generation_time: Optional[float] = None


# Результат толкования: размеченное объединение по полю kind
InterpretationResult = Union[TextInterpretation, StructuredInterpretationV1, StructuredInterpretationV2]


class ReadingMetadata(BaseModel):
    generation_time: Optional[float] = None
    model: Optional[str] = None
    quantum_source: Optional[Literal["quantum", "crypto"]] = None


class IChingReading(BaseModel):
    """Завершенное гадание"""
    id: str
    user_id: str
    created_at: datetime = Field(default_factory=datetime.now)
    question: str
    casting_method: CastingMethod
    primary_hexagram: CastHexagram
    relating_hexagram: Optional[CastHexagram] = None
    interpretation: InterpretationResult = Field(..., discriminator="kind")
    metadata: ReadingMetadata = Field(default_factory=ReadingMetadata)


# ---------------------------------------------------------------------------
# Модели запросов/ответов API
# ---------------------------------------------------------------------------

class CastRequest(BaseModel):
    method: CastingMethod = Field(CastingMethod.THREE_COINS, description="Метод гадания")


class StartSessionRequest(BaseModel):
    method: CastingMethod = Field(CastingMethod.THREE_COINS, description="Метод гадания")


class QuestionRequest(BaseModel):
    question: str = Field(..., description="Вопрос для гадания")


class InterpretationOptions(BaseModel):
    detail_level: Optional[str] = Field(None, description="concise/detailed/comprehensive (brief = concise)")
    style: Optional[str] = Field(None, description="traditional/psychological/spiritual/practical (mystical = spiritual)")
    schema_version: Optional[InterpretationSchema] = Field(None, description="text/v1/v2")


class CastLine(BaseModel):
    """Черта, присланная клиентом: только позиция и тип"""
    position: int = Field(..., ge=1, le=6, description="Позиция черты (1 - нижняя)")
    type: LineType = Field(..., description="Тип черты")


class CastLinesRequest(BaseModel):
    """
    Запрос с выпавшими чертами. Гексаграммы клиент не присылает:
    основная и производная строятся на сервере по шести чертам.
    """
    lines: List[CastLine] = Field(..., min_length=6, max_length=6, description="Шесть черт снизу вверх")

    @field_validator("lines")
    @classmethod
    def check_positions(cls, lines: List[CastLine]) -> List[CastLine]:
        ordered = sorted(lines, key=lambda line: line.position)
        if [line.position for line in ordered] != [1, 2, 3, 4, 5, 6]:
            raise ValueError("Позиции черт должны быть 1..6 без повторов")
        return ordered


class InterpretRequest(InterpretationOptions, CastLinesRequest):
    question: str = Field(..., description="Вопрос для гадания")


class SaveReadingRequest(CastLinesRequest):
    question: str
    casting_method: CastingMethod
    interpretation: InterpretationResult = Field(..., discriminator="kind")
    metadata: ReadingMetadata = Field(default_factory=ReadingMetadata)


class ApiResponse(BaseModel):
    """Общая модель ответа API"""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


class RandomHexagramResponse(BaseModel):
    """Модель ответа с быстрым гаданием"""
    number: int
    title: str
    description: str
    primary_hexagram: CastHexagram
    relating_hexagram: Optional[CastHexagram] = None
    formatted_text: str
    quantum_source: Optional[str] = None


class SessionSnapshot(BaseModel):
    """Состояние сессии гадания для клиента"""
    id: str
    user_id: str
    started_at: datetime
    step: SessionStep
    question: str
    casting_method: CastingMethod
    cast_lines: List[HexagramLine] = Field(default_factory=list)
    coin_tosses: List[CoinToss] = Field(default_factory=list)
    primary_hexagram: Optional[CastHexagram] = None
    relating_hexagram: Optional[CastHexagram] = None
    interpretation: Optional[InterpretationResult] = Field(None, discriminator="kind")
    error: Optional[str] = None
    random_source_kind: Optional[str] = None
    saved_reading_id: Optional[str] = None
