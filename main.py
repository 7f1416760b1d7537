"""
I Ching Oracle API Service - Main Application
"""
import asyncio
import logging
from contextlib import asynccontextmanager
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from api.v1 import health, iching
from api.middleware import log_request_middleware
from core.exceptions import OracleException, oracle_exception_handler
from core.openrouter_client import OpenRouterClient
from core.random_source import build_random_source
from core.redis_store import RedisStore
from modules.iching import IChingOpenRouterService, IChingReadingRepository, IChingService, SessionRegistry

# Настройка логирования
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(f"{config.LOG_DIR}/app.log"),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

# ================= APPLICATION =================

async def connect_redis(store: RedisStore, attempts: int) -> bool:
    """Подключение к Redis с несколькими попытками"""
    for attempt in range(1, attempts + 1):
        logger.info(f"Попытка подключения к Redis {attempt}/{attempts}...")
        if await store.connect():
            logger.info(f"Успешное подключение к Redis с попытки {attempt}")
            return True
        logger.warning(f"Не удалось подключиться к Redis с попытки {attempt}. "
                       f"{'Пробуем еще раз...' if attempt < attempts else 'Исчерпаны все попытки.'}")
        if attempt < attempts:
            await asyncio.sleep(1)

    logger.critical(f"Не удалось подключиться к Redis после {attempts} попыток! "
                    f"Гадания будут сохраняться только локально.")
    return False


def build_openrouter_client():
    """Клиент OpenRouter или None, если ключи не настроены"""
    if not config.OPENROUTER_API_KEYS:
        logger.warning("Ключи OpenRouter не заданы, будут использоваться только статические толкования")
        return None
    return OpenRouterClient(
        api_url=config.OPENROUTER_API_URL,
        api_keys=config.OPENROUTER_API_KEYS,
        models=config.OPENROUTER_MODELS,
        model_configs=config.OPENROUTER_MODEL_CONFIGS,
        model_api_keys=config.OPENROUTER_MODEL_API_KEYS,
        timeout=config.OPENROUTER_TIMEOUT
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Старт I Ching Oracle API Service...")

    redis_store = RedisStore(config.REDIS_URL)
    await connect_redis(redis_store, config.REDIS_CONNECT_ATTEMPTS)

    random_source = build_random_source(
        quantum_enabled=config.QUANTUM_RANDOM_ENABLED,
        api_url=config.QUANTUM_RANDOM_API_URL,
        api_key=config.QUANTUM_RANDOM_API_KEY,
        timeout=config.QUANTUM_RANDOM_TIMEOUT
    )

    interpreter = IChingOpenRouterService(
        openrouter_client=build_openrouter_client(),
        prompts_config=config.ICHING_PROMPTS,
        default_style=config.ICHING_DEFAULT_STYLE,
        default_detail_level=config.ICHING_DEFAULT_DETAIL_LEVEL,
        default_schema=config.ICHING_INTERPRETATION_SCHEMA,
        min_response_length=config.ICHING_RESPONSE_MIN_LENGTH,
        max_response_length=config.ICHING_RESPONSE_MAX_LENGTH
    )
    repository = IChingReadingRepository(
        redis_store,
        history_limit=config.READINGS_HISTORY_LIMIT,
        ttl_days=config.READINGS_TTL_DAYS
    )
    sessions = SessionRegistry(
        ttl_minutes=config.SESSION_TTL_MINUTES,
        min_question_length=config.ICHING_MIN_QUESTION_LENGTH
    )

    app.state.redis_store = redis_store
    app.state.random_source = random_source
    app.state.iching_openrouter_service = interpreter
    app.state.iching_repository = repository
    app.state.iching_sessions = sessions
    app.state.iching_service = IChingService(random_source, interpreter, repository, sessions)

    yield

    # Shutdown
    logger.info("Выключение I Ching Oracle API Service...")
    sessions.close_all()
    await redis_store.close()


# Создание FastAPI приложения
app = FastAPI(
    title=config.APP_NAME,
    description=config.APP_DESCRIPTION,
    version=config.APP_VERSION,
    docs_url="/docs" if config.DEBUG else None,
    redoc_url="/redoc" if config.DEBUG else None,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,  # 24 часа
)

# Middleware для логирования запросов
app.middleware("http")(log_request_middleware)


@app.exception_handler(OracleException)
async def handle_oracle_exception(request: Request, exc: OracleException):
    """Ошибки сервиса гаданий отдаются в формате ApiResponse"""
    http_exc = oracle_exception_handler(exc)
    logger.warning(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"success": False, "data": None, "error": http_exc.detail}
    )

# ================= ROUTES =================

app.include_router(health.router, tags=["health"])
app.include_router(iching.router, tags=["iching"])

# ================= ENTRY POINT =================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower()
    )
