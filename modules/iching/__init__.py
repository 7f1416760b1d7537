"""
Модуль Книги Перемен (И-Цзин)
"""
from .models import (
    ApiResponse,
    CastHexagram,
    CastingMethod,
    Hexagram,
    IChingReading,
    InterpretationResult,
    RandomHexagramResponse,
    Trigram,
)
from .openrouter_service import IChingOpenRouterService
from .repository import IChingReadingRepository
from .service import IChingService
from .session import ReadingSession, SessionRegistry

__all__ = [
    'ApiResponse',
    'CastHexagram',
    'CastingMethod',
    'Hexagram',
    'IChingReading',
    'InterpretationResult',
    'RandomHexagramResponse',
    'Trigram',
    'IChingOpenRouterService',
    'IChingReadingRepository',
    'IChingService',
    'ReadingSession',
    'SessionRegistry',
]
