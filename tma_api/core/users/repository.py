# tma_api/core/users/repository.py
"""
Репозиторий пользователей (PostgreSQL).
Любая ошибка драйвера оборачивается в DatabaseError, без повторов.
"""

from __future__ import annotations

import asyncio
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

import asyncpg

from tma_api.common.exceptions import DatabaseError
from tma_api.common.logger import log_error
from tma_api.core.auth.models import TelegramUser
from tma_api.core.users.models import UpsertResult, UserRecord, WalletData
from tma_api.infra.database import DatabaseManager

T = TypeVar("T")

USER_COLUMNS = """
    telegram_id, username, first_name, last_name, language_code, is_premium,
    photo_url, role, created_at, updated_at, last_login, referrer_id, referral_code,
    wallet_address, wallet_address_friendly, wallet_chain, wallet_app_name,
    wallet_connected_at, wallet_connected
"""

STORAGE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


def wrap_storage_errors(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Декоратор: ошибки asyncpg/сети -> DatabaseError с логированием."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except STORAGE_ERRORS as e:
                await log_error(f"Ошибка БД ({operation}): {e}")
                raise DatabaseError(f"Ошибка БД при операции {operation}", cause=e) from e

        return wrapper

    return decorator


def _to_user(row: Any) -> UserRecord:
    return UserRecord.model_validate(dict(row))


class UserRepository:
    """Репозиторий пользователей."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    @wrap_storage_errors("get_by_telegram_id")
    async def get_by_telegram_id(self, telegram_id: int) -> Optional[UserRecord]:
        """Пользователь по Telegram ID или None."""
        row = await self._db.fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE telegram_id = $1",
            telegram_id,
        )
        return _to_user(row) if row else None

    @wrap_storage_errors("get_by_referral_code")
    async def get_by_referral_code(self, referral_code: str) -> Optional[UserRecord]:
        """Владелец реферального кода или None."""
        row = await self._db.fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE referral_code = $1",
            referral_code,
        )
        return _to_user(row) if row else None

    @wrap_storage_errors("get_by_wallet_address")
    async def get_by_wallet_address(self, address: str) -> Optional[UserRecord]:
        """Пользователь, к которому привязан адрес, или None."""
        row = await self._db.fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE wallet_address = $1",
            address,
        )
        return _to_user(row) if row else None

    @wrap_storage_errors("upsert")
    async def upsert(
        self,
        identity: TelegramUser,
        referral_code: str,
        referrer_id: Optional[int] = None,
    ) -> UpsertResult:
        """
        Атомарный insert-or-update по telegram_id.

        При вставке записываются referral_code и referrer_id.
        При конфликте обновляются только данные профиля Telegram,
        last_login и updated_at; referrer_id, referral_code, role и
        created_at не трогаются.

        (xmax = 0) истинно только для строки, вставленной этим запросом.
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO users (
                telegram_id, username, first_name, last_name, language_code,
                is_premium, photo_url, referral_code, referrer_id, last_login
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, NOW())
            ON CONFLICT (telegram_id) DO UPDATE SET
                username = EXCLUDED.username,
                first_name = EXCLUDED.first_name,
                last_name = EXCLUDED.last_name,
                language_code = EXCLUDED.language_code,
                is_premium = EXCLUDED.is_premium,
                photo_url = EXCLUDED.photo_url,
                last_login = NOW(),
                updated_at = NOW()
            RETURNING {USER_COLUMNS}, (xmax = 0) AS inserted
            """,
            identity.id,
            identity.username,
            identity.first_name,
            identity.last_name,
            identity.language_code or "en",
            bool(identity.is_premium),
            identity.photo_url,
            referral_code,
            referrer_id,
        )
        data = dict(row)
        inserted = data.pop("inserted", None)
        return UpsertResult(user=UserRecord.model_validate(data), inserted=inserted)

    @wrap_storage_errors("list_referrals")
    async def list_referrals(self, telegram_id: int) -> list[UserRecord]:
        """Приглашённые пользователем, новые первыми."""
        rows = await self._db.fetch(
            f"""
            SELECT {USER_COLUMNS} FROM users
            WHERE referrer_id = $1
            ORDER BY created_at DESC
            """,
            telegram_id,
        )
        return [_to_user(row) for row in rows]

    @wrap_storage_errors("set_wallet")
    async def set_wallet(self, telegram_id: int, wallet: WalletData) -> Optional[UserRecord]:
        """
        Привязывает кошелёк.

        Returns:
            Обновлённая запись; None, если пользователя нет или адрес
            уже занят другим пользователем (уникальный индекс)
        """
        try:
            row = await self._db.fetchrow(
                f"""
                UPDATE users SET
                    wallet_address = $2,
                    wallet_address_friendly = $3,
                    wallet_chain = $4,
                    wallet_app_name = $5,
                    wallet_connected_at = NOW(),
                    wallet_connected = TRUE
                WHERE telegram_id = $1
                RETURNING {USER_COLUMNS}
                """,
                telegram_id,
                wallet.address,
                wallet.address_friendly,
                wallet.chain,
                wallet.app_name,
            )
        except asyncpg.UniqueViolationError:
            return None
        return _to_user(row) if row else None

    @wrap_storage_errors("clear_wallet")
    async def clear_wallet(self, telegram_id: int) -> Optional[UserRecord]:
        """Отвязывает кошелёк. None, если пользователя нет."""
        row = await self._db.fetchrow(
            f"""
            UPDATE users SET
                wallet_address = NULL,
                wallet_address_friendly = NULL,
                wallet_chain = NULL,
                wallet_app_name = NULL,
                wallet_connected_at = NULL,
                wallet_connected = FALSE
            WHERE telegram_id = $1
            RETURNING {USER_COLUMNS}
            """,
            telegram_id,
        )
        return _to_user(row) if row else None
