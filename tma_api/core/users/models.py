# tma_api/core/users/models.py
"""
Модели данных пользователей.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tma_api.common.constants import (
    NEW_USER_TOLERANCE_SECONDS,
    REFERRAL_CODE_LENGTH,
    REFERRAL_CODE_PREFIX,
    UserRole,
    WalletChain,
)
from tma_api.core.auth.models import TelegramUser


class UserRecord(BaseModel):
    """Пользователь в БД (таблица users)."""

    model_config = ConfigDict(from_attributes=True)

    telegram_id: int = Field(..., description="Telegram ID (первичный ключ)")
    username: Optional[str] = Field(None, description="Username в Telegram")
    first_name: str = Field(..., description="Имя")
    last_name: Optional[str] = Field(None, description="Фамилия")
    language_code: str = Field("en", description="Код языка")
    is_premium: bool = Field(False, description="Telegram Premium")
    photo_url: Optional[str] = Field(None, description="URL аватара")
    # role хранится как TEXT, значения вне UserRole допустимы
    role: str = Field(UserRole.USER.value, description="Роль пользователя (user, admin, ...)")

    created_at: datetime = Field(..., description="Дата регистрации")
    updated_at: datetime = Field(..., description="Дата обновления")
    last_login: datetime = Field(..., description="Последний вход")

    # Реферальная программа
    referrer_id: Optional[int] = Field(None, description="Кто пригласил (ставится один раз)")
    referral_code: str = Field(..., description="Собственный реферальный код")

    # TON-кошелёк
    wallet_address: Optional[str] = Field(None, description="Raw адрес")
    wallet_address_friendly: Optional[str] = Field(None, description="User-friendly адрес")
    wallet_chain: Optional[int] = Field(None, description="Сеть (-239 mainnet, -3 testnet)")
    wallet_app_name: Optional[str] = Field(None, description="Кошелёк (Tonkeeper, ...)")
    wallet_connected_at: Optional[datetime] = Field(None, description="Когда привязан")
    wallet_connected: bool = Field(False, description="Кошелёк привязан")

    def looks_newly_created(self, tolerance_seconds: float = NEW_USER_TOLERANCE_SECONDS) -> bool:
        """
        Эвристика "новый пользователь": created_at и updated_at совпадают.
        Используется, только если хранилище не сообщило, была ли вставка.
        """
        return abs((self.updated_at - self.created_at).total_seconds()) < tolerance_seconds


class WalletData(BaseModel):
    """Данные TON Connect для привязки кошелька."""

    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(..., min_length=1)
    address_friendly: str = Field(..., min_length=1, alias="addressFriendly")
    chain: int = Field(..., description="ID сети TON Connect (см. WalletChain)")
    app_name: Optional[str] = Field(None, alias="appName")

    @property
    def network(self) -> Optional[WalletChain]:
        """Известная сеть TON или None для прочих ID."""
        try:
            return WalletChain(self.chain)
        except ValueError:
            return None


class UpsertResult(BaseModel):
    """Результат upsert: запись и была ли это вставка."""

    user: UserRecord
    # None: хранилище не сообщило, была ли вставка
    inserted: Optional[bool] = None


class LoginResult(BaseModel):
    """Результат входа через Telegram."""

    user: UserRecord
    is_new_user: bool
    referral_applied: bool
    persisted: bool = True


def generate_referral_code() -> str:
    """Новый случайный реферальный код: "r" + 15 hex-символов."""
    return REFERRAL_CODE_PREFIX + secrets.token_hex(8)[:REFERRAL_CODE_LENGTH]


def build_offline_user(identity: TelegramUser) -> UserRecord:
    """Запись пользователя без БД (offline-режим, не сохраняется)."""
    now = datetime.now(timezone.utc)
    return UserRecord(
        telegram_id=identity.id,
        username=identity.username,
        first_name=identity.first_name,
        last_name=identity.last_name,
        language_code=identity.language_code or "en",
        is_premium=bool(identity.is_premium),
        photo_url=identity.photo_url,
        role=UserRole.USER.value,
        created_at=now,
        updated_at=now,
        last_login=now,
        referrer_id=None,
        referral_code=f"{REFERRAL_CODE_PREFIX}{str(identity.id)[:REFERRAL_CODE_LENGTH]}",
    )
