"""
Эндпоинты для гаданий по Книге Перемен (И-Цзин)
"""
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Query, Request

from modules.iching import ApiResponse, CastingMethod, IChingService
from modules.iching.models import (
    CastRequest,
    InterpretationOptions,
    InterpretRequest,
    QuestionRequest,
    SaveReadingRequest,
    StartSessionRequest,
)

router = APIRouter(prefix="/api/v1/iching")


def get_service(request: Request) -> IChingService:
    return request.app.state.iching_service


# ================= СПРАВОЧНИКИ =================

@router.get("/trigrams", response_model=ApiResponse)
async def list_trigrams(request: Request):
    """Список восьми триграмм"""
    return get_service(request).list_trigrams()


@router.get("/hexagrams", response_model=ApiResponse)
async def list_hexagrams(request: Request):
    """Все 64 гексаграммы в порядке Вэнь-вана"""
    return get_service(request).list_hexagrams()


@router.get("/hexagrams/{number}", response_model=ApiResponse)
async def get_hexagram(number: int, request: Request):
    """
    Гексаграмма по номеру

    :param number: Номер гексаграммы (1-64)
    """
    response = get_service(request).get_hexagram(number)
    if not response.success:
        raise HTTPException(status_code=404, detail=response.error)
    return response


# ================= РАЗОВЫЕ ГАДАНИЯ =================

@router.post("/cast", response_model=ApiResponse)
async def cast(body: CastRequest, request: Request):
    """Бросок гексаграммы без сессии"""
    return await get_service(request).cast(body.method)


@router.post("/interpret", response_model=ApiResponse)
async def interpret(body: InterpretRequest, request: Request):
    """
    Толкование выпавшей гексаграммы.
    При недоступности сервиса генерации возвращается статическое толкование.
    """
    return await get_service(request).interpret(body)


@router.get("/random", response_model=ApiResponse)
async def random_reading(request: Request, method: CastingMethod = Query(CastingMethod.THREE_COINS)):
    """
    Быстрое гадание без вопроса

    Возвращает гексаграмму с описанием и текстом в формате Telegram Markdown.
    Используется для интеграции с Telegram-ботами.
    """
    return await get_service(request).random_reading(method)


# ================= СЕССИИ =================

@router.post("/sessions", response_model=ApiResponse)
async def start_session(body: StartSessionRequest, request: Request,
                        x_user_id: Optional[str] = Header(None)):
    """Начало новой сессии гадания (предыдущая сессия пользователя закрывается)"""
    return get_service(request).start_session(x_user_id, body.method)


@router.get("/sessions/current", response_model=ApiResponse)
async def get_session(request: Request, x_user_id: Optional[str] = Header(None)):
    return get_service(request).get_session(x_user_id)


@router.post("/sessions/current/question", response_model=ApiResponse)
async def submit_question(body: QuestionRequest, request: Request,
                          x_user_id: Optional[str] = Header(None)):
    return get_service(request).submit_question(x_user_id, body.question)


@router.post("/sessions/current/entropy", response_model=ApiResponse)
async def load_entropy(request: Request, x_user_id: Optional[str] = Header(None)):
    """Получение случайных чисел для всех шести черт"""
    return await get_service(request).load_entropy(x_user_id)


@router.post("/sessions/current/lines", response_model=ApiResponse)
async def cast_lines(request: Request, x_user_id: Optional[str] = Header(None),
                     count: Optional[int] = Query(None, ge=1, le=6)):
    """
    Бросок черт. Без параметра count бросаются все оставшиеся черты.
    """
    return get_service(request).cast_lines(x_user_id, count)


@router.post("/sessions/current/interpretation", response_model=ApiResponse)
async def request_interpretation(request: Request, body: Optional[InterpretationOptions] = None,
                                 x_user_id: Optional[str] = Header(None)):
    return await get_service(request).request_interpretation(x_user_id, body)


@router.post("/sessions/current/retry", response_model=ApiResponse)
async def retry_session(request: Request, x_user_id: Optional[str] = Header(None)):
    """Повтор шага, завершившегося ошибкой"""
    return get_service(request).retry_session(x_user_id)


@router.post("/sessions/current/save", response_model=ApiResponse)
async def save_session(request: Request, x_user_id: Optional[str] = Header(None)):
    return await get_service(request).save_session(x_user_id)


@router.delete("/sessions/current", response_model=ApiResponse)
async def teardown_session(request: Request, x_user_id: Optional[str] = Header(None)):
    return get_service(request).teardown_session(x_user_id)


# ================= ИСТОРИЯ =================

@router.post("/readings", response_model=ApiResponse)
async def save_reading(body: SaveReadingRequest, request: Request,
                       x_user_id: Optional[str] = Header(None)):
    """Сохранение гадания в историю пользователя"""
    service = get_service(request)
    return await service.save_reading(x_user_id, service.reading_from_request(x_user_id, body))


@router.get("/readings", response_model=ApiResponse)
async def load_history(request: Request, x_user_id: Optional[str] = Header(None),
                       limit: Optional[int] = Query(None, ge=1, le=100)):
    """История гаданий пользователя, новые первыми"""
    return await get_service(request).load_history(x_user_id, limit)


@router.delete("/readings/{reading_id}", response_model=ApiResponse)
async def delete_reading(reading_id: str, request: Request, x_user_id: Optional[str] = Header(None)):
    return await get_service(request).delete_reading(x_user_id, reading_id)
