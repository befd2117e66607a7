# tma_api/services/auth_api/dependencies.py
"""
Dependency Injection для Auth API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tma_api.common.constants import Environment
from tma_api.core.auth.init_data import TelegramInitDataAuth, build_auth_strategy
from tma_api.core.users.repository import UserRepository
from tma_api.core.users.service import UserService
from tma_api.core.users.wallets import WalletService

if TYPE_CHECKING:
    from tma_api.infra.database import DatabaseManager


# Синглтоны
_auth: TelegramInitDataAuth | None = None
_user_service: UserService | None = None
_wallet_service: WalletService | None = None


def init_dependencies(
    db: "DatabaseManager | None",
    environment: Environment,
    bot_token: str,
    init_data_max_age: int = 0,
) -> None:
    """
    Инициализировать зависимости при старте приложения.

    Args:
        db: Подключённая БД или None (offline-режим)
        environment: Режим окружения (production отключает mock initData)
        bot_token: Токен бота для проверки подписи
        init_data_max_age: Максимальный возраст initData, 0 — без проверки
    """
    global _auth, _user_service, _wallet_service

    repository = UserRepository(db) if db is not None else None

    _auth = build_auth_strategy(environment, bot_token, init_data_max_age)
    _user_service = UserService(repository)
    _wallet_service = WalletService(repository)


def get_auth_strategy() -> TelegramInitDataAuth:
    """Стратегия проверки initData."""
    if _auth is None:
        raise RuntimeError("Auth не инициализирован. Вызовите init_dependencies()")
    return _auth


def get_user_service() -> UserService:
    """Сервис пользователей."""
    if _user_service is None:
        raise RuntimeError("UserService не инициализирован. Вызовите init_dependencies()")
    return _user_service


def get_wallet_service() -> WalletService:
    """Сервис кошельков."""
    if _wallet_service is None:
        raise RuntimeError("WalletService не инициализирован. Вызовите init_dependencies()")
    return _wallet_service


def cleanup_dependencies() -> None:
    """Сбросить синглтоны при остановке приложения."""
    global _auth, _user_service, _wallet_service
    _auth = None
    _user_service = None
    _wallet_service = None
