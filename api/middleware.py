"""
Middleware для API
"""
import time
from fastapi import Request
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)

async def log_request_middleware(request: Request, call_next):
    """Middleware для логирования запросов"""
    start_time = time.time()

    client_host = request.client.host if request.client else "unknown"
    user_id = request.headers.get("x-user-id", "-")

    logger.info(f"Старт запроса: {request.method} {request.url.path} от {client_host} (пользователь: {user_id})")

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Ошибка обработки запроса {request.method} {request.url.path}: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Внутренняя ошибка сервера"}
        )

    process_time = time.time() - start_time

    logger.info(
        f"Запрос завершен: {request.method} {request.url.path} "
        f"от {client_host} - Статус: {response.status_code} "
        f"- Время: {process_time:.4f}s"
    )

    response.headers["X-Process-Time"] = str(process_time)

    return response
