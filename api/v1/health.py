"""
Эндпоинты проверки здоровья сервиса
"""
from datetime import datetime
from fastapi import APIRouter, Request

import config

router = APIRouter()

@router.get("/health")
async def health_check(request: Request):
    """Проверка здоровья сервиса"""
    store = request.app.state.redis_store
    redis_ok = await store.ping()
    return {
        "status": "healthy" if redis_ok else "degraded",
        "redis": "connected" if redis_ok else "unavailable",
        **request.app.state.iching_service.status(),
        "timestamp": datetime.now().isoformat()
    }

@router.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "service": config.APP_NAME,
        "version": config.APP_VERSION,
        "status": "active",
        "endpoints": {
            "hexagrams": "/api/v1/iching/hexagrams",
            "cast": "/api/v1/iching/cast",
            "interpret": "/api/v1/iching/interpret",
            "random": "/api/v1/iching/random",
            "sessions": "/api/v1/iching/sessions",
            "readings": "/api/v1/iching/readings",
            "health": "/health"
        }
    }
