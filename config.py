"""
Конфигурация приложения
"""
import os
from typing import List, Optional, Dict, Any
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Базовые настройки приложения
APP_NAME = "I Ching Oracle API"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Асинхронный API сервис гаданий по Книге Перемен (И-Цзин)"

# Настройки сервера
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8081"))
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Настройки CORS
CORS_ORIGINS: List[str] = [
    "http://localhost",
    "http://localhost:8080",
    "http://localhost:8081",
    "http://127.0.0.1",
    "http://127.0.0.1:8080",
    "http://127.0.0.1:8081",
]

# Добавление дополнительных CORS origins из переменной окружения
if os.getenv("ADDITIONAL_CORS_ORIGINS"):
    CORS_ORIGINS.extend(os.getenv("ADDITIONAL_CORS_ORIGINS").split(","))

# Настройки логирования
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))

# Создаем директорию для логов, если она не существует
LOG_DIR.mkdir(exist_ok=True)

# Настройки для продакшн
PROD_MODE = os.getenv("PROD_MODE", "false").lower() == "true"

# SSL настройки
SSL_CERT_PATH: Optional[str] = os.getenv("SSL_CERT_PATH")
SSL_KEY_PATH: Optional[str] = os.getenv("SSL_KEY_PATH")

# Настройки прокси
PROXY_PREFIX = os.getenv("PROXY_PREFIX", "")

# Настройки Redis (хранилище гаданий)
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_CONNECT_ATTEMPTS = int(os.getenv("REDIS_CONNECT_ATTEMPTS", "3"))
READINGS_HISTORY_LIMIT = int(os.getenv("READINGS_HISTORY_LIMIT", "50"))
READINGS_TTL_DAYS = int(os.getenv("READINGS_TTL_DAYS", "0"))  # 0 - без срока хранения
SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", "30"))

# Настройки OpenRouter API
OPENROUTER_API_URL = os.getenv("URL_LINK_OPENROUTER", "https://openrouter.ai/api/v1/chat/completions")
OPENROUTER_TIMEOUT = int(os.getenv("OPENROUTER_TIMEOUT", "60"))
OPENROUTER_API_KEYS = [
    key for key in [
        os.getenv("OPENROUTER_API_KEY", ""),
        os.getenv("API_for_Gemini_2.0_Flash", ""),
        os.getenv("API_for_Claude_Sonnet", ""),
    ] if key
]

# Модели OpenRouter
OPENROUTER_MODELS = [
    "anthropic/claude-3.5-sonnet",
    "google/gemini-2.0-flash-001",
    "google/gemini-2.0-flash-exp:free",
]

# Сопоставление моделей и их API ключей
OPENROUTER_MODEL_API_KEYS = {
    "anthropic/claude-3.5-sonnet": os.getenv("API_for_Claude_Sonnet", ""),
    "google/gemini-2.0-flash-001": os.getenv("API_for_Gemini_2.0_Flash", ""),
    "google/gemini-2.0-flash-exp:free": os.getenv("API_for_Gemini_2.0_Flash", ""),
}

# Конфигурация специфичных запросов для моделей
OPENROUTER_MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "anthropic/claude-3.5-sonnet": {
        "request_type": "standard",
        "timeout": 60
    },
    "google/gemini-2.0-flash-001": {
        "request_type": "openai",
        "timeout": 60
    },
    "google/gemini-2.0-flash-exp:free": {
        "request_type": "openai",
        "timeout": 60
    },
}

# Настройки промптов И-Цзин для разных уровней детализации
ICHING_PROMPTS: Dict[str, Dict[str, Any]] = {
    "concise": {
        "max_tokens": 1000,
        "temperature": 0.7
    },
    "detailed": {
        "max_tokens": 2000,
        "temperature": 0.7
    },
    "comprehensive": {
        "max_tokens": 3000,
        "temperature": 0.7
    },
    # Структурированный формат V2 требует больше токенов
    "structured_v2": {
        "max_tokens": 4000,
        "temperature": 0.7
    }
}

ICHING_DEFAULT_STYLE = os.getenv("ICHING_DEFAULT_STYLE", "psychological")
ICHING_DEFAULT_DETAIL_LEVEL = os.getenv("ICHING_DEFAULT_DETAIL_LEVEL", "detailed")
ICHING_INTERPRETATION_SCHEMA = os.getenv("ICHING_INTERPRETATION_SCHEMA", "v2")  # text | v1 | v2

# Границы длины ответа для текстового (legacy) формата
ICHING_RESPONSE_MIN_LENGTH = int(os.getenv("ICHING_RESPONSE_MIN_LENGTH", "100"))
ICHING_RESPONSE_MAX_LENGTH = int(os.getenv("ICHING_RESPONSE_MAX_LENGTH", "10000"))

# Минимальная длина вопроса (после trim)
ICHING_MIN_QUESTION_LENGTH = 3

# Настройки квантового генератора случайных чисел
QUANTUM_RANDOM_ENABLED = os.getenv("QUANTUM_RANDOM_ENABLED", "true").lower() == "true"
QUANTUM_RANDOM_API_URL = os.getenv("QUANTUM_RANDOM_API_URL", "https://qrng.anu.edu.au/API/jsonI.php")
QUANTUM_RANDOM_API_KEY = os.getenv("QUANTUM_RANDOM_API_KEY", "")
QUANTUM_RANDOM_TIMEOUT = int(os.getenv("QUANTUM_RANDOM_TIMEOUT", "5"))


# Функция для получения полного URL API
def get_api_url(path: str = "") -> str:
    """Получение полного URL API с учетом настроек"""
    protocol = "https" if SSL_CERT_PATH and SSL_KEY_PATH else "http"
    base_url = f"{protocol}://{HOST}:{PORT}"
    if PROXY_PREFIX:
        base_url = f"{base_url}/{PROXY_PREFIX.strip('/')}"
    if path:
        return f"{base_url}/{path.lstrip('/')}"
    return base_url
