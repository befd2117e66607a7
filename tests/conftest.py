# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
from unittest.mock import AsyncMock
from urllib.parse import urlencode

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("BOT_TOKEN", "test_bot_token")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DB_PASSWORD", "test_password")

from tma_api.core.auth.models import TelegramUser  # noqa: E402
from tma_api.core.users.models import UpsertResult, UserRecord, WalletData  # noqa: E402


TEST_BOT_TOKEN = "123456:TEST-bot-token"


# =============================================================================
# ПОДПИСАННЫЕ INITDATA
# =============================================================================

def sign_init_data(fields: dict[str, Any], bot_token: str = TEST_BOT_TOKEN) -> str:
    """
    Собирает initData так, как это делает Telegram:
    поля + hash = HMAC-SHA256(HMAC-SHA256("WebAppData", token), data_check_string).
    """
    values = {
        key: json.dumps(value, separators=(",", ":")) if isinstance(value, dict) else str(value)
        for key, value in fields.items()
    }
    data_check_string = "\n".join(f"{k}={values[k]}" for k in sorted(values))
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    values["hash"] = hmac.new(secret, data_check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode(values)


@pytest.fixture
def bot_token() -> str:
    return TEST_BOT_TOKEN


@pytest.fixture
def make_init_data() -> Callable[..., str]:
    """Фабрика подписанных initData."""

    def _make(
        user: Optional[dict[str, Any]] = None,
        *,
        auth_date: int = 1700000000,
        bot_token: str = TEST_BOT_TOKEN,
        **extra: Any,
    ) -> str:
        fields: dict[str, Any] = {"auth_date": auth_date, **extra}
        if user is not None:
            fields["user"] = user
        return sign_init_data(fields, bot_token)

    return _make


# =============================================================================
# IN-MEMORY РЕПОЗИТОРИЙ
# =============================================================================

class FakeUserRepository:
    """
    Репозиторий в памяти с семантикой UserRepository:
    upsert по telegram_id, уникальность кошелька, неизменяемые
    referrer_id/referral_code/created_at при обновлении.
    """

    def __init__(self, report_inserted: bool = True) -> None:
        self.users: dict[int, UserRecord] = {}
        self.report_inserted = report_inserted
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._codes = 0

    def tick(self) -> datetime:
        self._clock += timedelta(minutes=5)
        return self._clock

    def next_referral_code(self) -> str:
        self._codes += 1
        return f"rcode{self._codes:010d}"

    def add_user(self, telegram_id: int, first_name: str = "User", **fields: Any) -> UserRecord:
        now = self.tick()
        user = UserRecord(
            telegram_id=telegram_id,
            first_name=first_name,
            created_at=now,
            updated_at=now,
            last_login=now,
            referral_code=fields.pop("referral_code", self.next_referral_code()),
            **fields,
        )
        self.users[telegram_id] = user
        return user

    async def get_by_telegram_id(self, telegram_id: int) -> Optional[UserRecord]:
        return self.users.get(telegram_id)

    async def get_by_referral_code(self, referral_code: str) -> Optional[UserRecord]:
        return next((u for u in self.users.values() if u.referral_code == referral_code), None)

    async def get_by_wallet_address(self, address: str) -> Optional[UserRecord]:
        return next((u for u in self.users.values() if u.wallet_address == address), None)

    async def upsert(
        self,
        identity: TelegramUser,
        referral_code: str,
        referrer_id: Optional[int] = None,
    ) -> UpsertResult:
        now = self.tick()
        profile = {
            "username": identity.username,
            "first_name": identity.first_name,
            "last_name": identity.last_name,
            "language_code": identity.language_code or "en",
            "is_premium": bool(identity.is_premium),
            "photo_url": identity.photo_url,
        }
        existing = self.users.get(identity.id)
        if existing is None:
            user = UserRecord(
                telegram_id=identity.id,
                created_at=now,
                updated_at=now,
                last_login=now,
                referral_code=referral_code,
                referrer_id=referrer_id,
                **profile,
            )
            inserted = True
        else:
            user = existing.model_copy(update={**profile, "updated_at": now, "last_login": now})
            inserted = False
        self.users[identity.id] = user
        return UpsertResult(user=user, inserted=inserted if self.report_inserted else None)

    async def list_referrals(self, telegram_id: int) -> list[UserRecord]:
        referrals = [u for u in self.users.values() if u.referrer_id == telegram_id]
        return sorted(referrals, key=lambda u: u.created_at, reverse=True)

    async def set_wallet(self, telegram_id: int, wallet: WalletData) -> Optional[UserRecord]:
        user = self.users.get(telegram_id)
        if user is None:
            return None
        owner = await self.get_by_wallet_address(wallet.address)
        if owner is not None and owner.telegram_id != telegram_id:
            return None
        user = user.model_copy(update={
            "wallet_address": wallet.address,
            "wallet_address_friendly": wallet.address_friendly,
            "wallet_chain": wallet.chain,
            "wallet_app_name": wallet.app_name,
            "wallet_connected_at": self.tick(),
            "wallet_connected": True,
        })
        self.users[telegram_id] = user
        return user

    async def clear_wallet(self, telegram_id: int) -> Optional[UserRecord]:
        user = self.users.get(telegram_id)
        if user is None:
            return None
        user = user.model_copy(update={
            "wallet_address": None,
            "wallet_address_friendly": None,
            "wallet_chain": None,
            "wallet_app_name": None,
            "wallet_connected_at": None,
            "wallet_connected": False,
        })
        self.users[telegram_id] = user
        return user


@pytest.fixture
def fake_repo() -> FakeUserRepository:
    """Пустой in-memory репозиторий."""
    return FakeUserRepository()


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    return db


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def telegram_user() -> TelegramUser:
    return TelegramUser(
        id=123,
        first_name="Ann",
        last_name="Smith",
        username="ann",
        language_code="en",
        is_premium=True,
    )


@pytest.fixture
def sample_user_row() -> dict[str, Any]:
    """Строка таблицы users, как её возвращает asyncpg."""
    now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    return {
        "telegram_id": 123,
        "username": "ann",
        "first_name": "Ann",
        "last_name": "Smith",
        "language_code": "en",
        "is_premium": True,
        "photo_url": None,
        "role": "user",
        "created_at": now,
        "updated_at": now,
        "last_login": now,
        "referrer_id": None,
        "referral_code": "r0123456789abcd",
        "wallet_address": None,
        "wallet_address_friendly": None,
        "wallet_chain": None,
        "wallet_app_name": None,
        "wallet_connected_at": None,
        "wallet_connected": False,
    }


@pytest.fixture
def wallet() -> WalletData:
    return WalletData(
        address="0:" + "ab" * 32,
        address_friendly="UQCrq6urq6urq6urq6urq6urq6urq6urq6urq6urq6urq7Lb",
        chain=-239,
        app_name="tonkeeper",
    )
