"""
Кастомные исключения для API
"""
from fastapi import HTTPException


class OracleException(Exception):
    """Базовое исключение сервиса гаданий"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NetworkException(OracleException):
    """Исключение для сетевых ошибок"""
    pass


class OperationCancelled(OracleException):
    """Операция прервана владельцем (например, при закрытии сессии)"""
    pass


class RandomSourceFailure(OracleException):
    """Источник случайных чисел недоступен"""
    pass


class HexagramTableCorruption(AssertionError):
    """
    Нарушен инвариант статической таблицы гексаграмм.
    Не обрабатывается: в корректном коде не возникает.
    """
    pass


class InterpretationServiceFailure(OracleException):
    """Ошибка сервиса генерации текста"""
    pass


class InterpretationValidationFailure(OracleException):
    """Ответ сервиса генерации не прошел проверку"""
    def __init__(self, message: str, reasons=None):
        self.reasons = list(reasons or [])
        super().__init__(message)


class PersistenceFailure(OracleException):
    """Ошибка сохранения/загрузки гаданий"""
    pass


class AuthenticationRequired(OracleException):
    """Операция требует аутентифицированного пользователя"""
    pass


class ReadingNotFound(OracleException):
    """Гадание не найдено (или принадлежит другому пользователю)"""
    pass


class SessionStateError(OracleException):
    """Недопустимый переход в сессии гадания"""
    pass


class InvalidQuestion(OracleException):
    """Вопрос не прошел проверку"""
    pass


def oracle_exception_handler(exc: OracleException) -> HTTPException:
    """Преобразование исключения сервиса в HTTPException"""
    if isinstance(exc, AuthenticationRequired):
        return HTTPException(
            status_code=401,
            detail=f"Требуется аутентификация: {exc.message}"
        )
    elif isinstance(exc, ReadingNotFound):
        return HTTPException(
            status_code=404,
            detail=f"Не найдено: {exc.message}"
        )
    elif isinstance(exc, InvalidQuestion):
        return HTTPException(
            status_code=422,
            detail=f"Некорректный вопрос: {exc.message}"
        )
    elif isinstance(exc, SessionStateError):
        return HTTPException(
            status_code=409,
            detail=f"Недопустимое действие: {exc.message}"
        )
    elif isinstance(exc, (RandomSourceFailure, NetworkException, PersistenceFailure)):
        return HTTPException(
            status_code=503,
            detail=f"Сервис временно недоступен: {exc.message}"
        )
    return HTTPException(
        status_code=500,
        detail=f"Ошибка: {exc.message}"
    )
