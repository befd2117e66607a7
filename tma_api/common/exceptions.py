# tma_api/common/exceptions.py
"""
Исключения приложения.
"""

from __future__ import annotations

from tma_api.common.constants import ErrorCode


class InitDataParseError(Exception):
    """initData прошли проверку подписи, но не содержат корректного user."""
    pass


class DatabaseError(Exception):
    """Ошибка хранилища (PostgreSQL недоступен, таймаут, ошибка запроса)."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ApiError(Exception):
    """
    Ошибка уровня HTTP API.
    Рендерится обработчиком исключений в стандартный конверт ответа.
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
