# tests/core/test_users_repository.py
"""
Тесты UserRepository на моке DatabaseManager.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import asyncpg
import pytest

from tma_api.common.constants import WalletChain
from tma_api.common.exceptions import DatabaseError
from tma_api.core.users.models import (
    UserRecord,
    WalletData,
    build_offline_user,
    generate_referral_code,
)
from tma_api.core.users.repository import UserRepository
from tma_api.core.users.service import UserService


class TestUserRepository:
    """SQL-вызовы и преобразование строк."""

    @pytest.mark.asyncio
    async def test_get_by_telegram_id(self, mock_db, sample_user_row) -> None:
        mock_db.fetchrow.return_value = sample_user_row
        repo = UserRepository(mock_db)

        user = await repo.get_by_telegram_id(123)

        assert isinstance(user, UserRecord)
        assert user.telegram_id == 123
        query, arg = mock_db.fetchrow.call_args.args
        assert "WHERE telegram_id = $1" in query
        assert arg == 123

    @pytest.mark.asyncio
    async def test_get_missing(self, mock_db) -> None:
        repo = UserRepository(mock_db)

        assert await repo.get_by_telegram_id(1) is None
        assert await repo.get_by_referral_code("rnope") is None
        assert await repo.get_by_wallet_address("0:00") is None

    @pytest.mark.asyncio
    async def test_upsert_inserted(self, mock_db, sample_user_row, telegram_user) -> None:
        mock_db.fetchrow.return_value = {**sample_user_row, "inserted": True}
        repo = UserRepository(mock_db)

        result = await repo.upsert(telegram_user, "rcode", referrer_id=77)

        assert result.inserted is True
        assert result.user.telegram_id == 123
        args = mock_db.fetchrow.call_args.args
        assert "ON CONFLICT (telegram_id) DO UPDATE" in args[0]
        assert "referrer_id = EXCLUDED" not in args[0]
        assert "referral_code = EXCLUDED" not in args[0]
        assert args[1:] == (123, "ann", "Ann", "Smith", "en", True, None, "rcode", 77)

    @pytest.mark.asyncio
    async def test_upsert_updated(self, mock_db, sample_user_row, telegram_user) -> None:
        mock_db.fetchrow.return_value = {**sample_user_row, "inserted": False}

        result = await UserRepository(mock_db).upsert(telegram_user, "rcode")

        assert result.inserted is False

    @pytest.mark.asyncio
    async def test_login_with_custom_role(self, mock_db, sample_user_row, telegram_user) -> None:
        """Роль вне UserRole читается из БД без ошибки."""
        mock_db.fetchrow.side_effect = [
            {**sample_user_row, "role": "moderator"},
            {**sample_user_row, "role": "moderator", "inserted": False},
        ]

        result = await UserService(UserRepository(mock_db)).login(telegram_user)

        assert result.user.role == "moderator"
        assert result.is_new_user is False
        assert result.referral_applied is False

    @pytest.mark.asyncio
    async def test_list_referrals(self, mock_db, sample_user_row) -> None:
        mock_db.fetch.return_value = [sample_user_row, {**sample_user_row, "telegram_id": 124}]

        users = await UserRepository(mock_db).list_referrals(100)

        assert [u.telegram_id for u in users] == [123, 124]
        query, arg = mock_db.fetch.call_args.args
        assert "ORDER BY created_at DESC" in query
        assert arg == 100

    @pytest.mark.asyncio
    async def test_set_wallet(self, mock_db, sample_user_row, wallet) -> None:
        mock_db.fetchrow.return_value = {
            **sample_user_row,
            "wallet_address": wallet.address,
            "wallet_connected": True,
        }

        user = await UserRepository(mock_db).set_wallet(123, wallet)

        assert user.wallet_connected is True
        args = mock_db.fetchrow.call_args.args
        assert args[1:] == (123, wallet.address, wallet.address_friendly, -239, "tonkeeper")

    @pytest.mark.asyncio
    async def test_set_wallet_unique_violation(self, mock_db, wallet) -> None:
        """Адрес уже занят другим пользователем: None, без исключения."""
        mock_db.fetchrow.side_effect = asyncpg.UniqueViolationError("duplicate key")

        assert await UserRepository(mock_db).set_wallet(123, wallet) is None

    @pytest.mark.asyncio
    async def test_clear_wallet_unknown(self, mock_db) -> None:
        assert await UserRepository(mock_db).clear_wallet(404) is None

    @pytest.mark.asyncio
    async def test_storage_error_wrapped(self, mock_db) -> None:
        mock_db.fetchrow.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(DatabaseError) as exc_info:
            await UserRepository(mock_db).get_by_telegram_id(1)

        assert isinstance(exc_info.value.cause, ConnectionRefusedError)

    @pytest.mark.asyncio
    async def test_postgres_error_wrapped(self, mock_db) -> None:
        mock_db.fetch.side_effect = asyncpg.PostgresError("syntax")

        with pytest.raises(DatabaseError):
            await UserRepository(mock_db).list_referrals(1)

    @pytest.mark.asyncio
    async def test_other_errors_not_wrapped(self, mock_db) -> None:
        mock_db.fetchrow.side_effect = ValueError("bug")

        with pytest.raises(ValueError):
            await UserRepository(mock_db).get_by_telegram_id(1)


class TestUserModels:
    """Тесты моделей и вспомогательных функций."""

    def test_referral_code_format(self) -> None:
        codes = {generate_referral_code() for _ in range(50)}

        assert len(codes) == 50
        for code in codes:
            assert code.startswith("r")
            assert len(code) == 16
            int(code[1:], 16)

    def test_looks_newly_created(self, sample_user_row) -> None:
        user = UserRecord.model_validate(sample_user_row)
        assert user.looks_newly_created() is True

        later = sample_user_row["created_at"] + timedelta(minutes=5)
        updated = user.model_copy(update={"updated_at": later})
        assert updated.looks_newly_created() is False

    def test_offline_user(self, telegram_user) -> None:
        user = build_offline_user(telegram_user)

        assert user.telegram_id == 123
        assert user.referral_code == "r123"
        assert user.referrer_id is None
        assert user.is_premium is True
        assert user.created_at.tzinfo is not None
        assert user.created_at <= datetime.now(timezone.utc)

    def test_wallet_aliases(self) -> None:
        wallet = WalletData.model_validate(
            {"address": "0:ab", "addressFriendly": "UQab", "chain": -3, "appName": "mytonwallet"}
        )

        assert wallet.address_friendly == "UQab"
        assert wallet.app_name == "mytonwallet"

    def test_custom_role_accepted(self, sample_user_row) -> None:
        user = UserRecord.model_validate({**sample_user_row, "role": "moderator"})
        assert user.role == "moderator"

    @pytest.mark.parametrize(
        ("chain", "network"),
        [(-239, WalletChain.MAINNET), (-3, WalletChain.TESTNET), (42, None)],
    )
    def test_wallet_network(self, chain: int, network) -> None:
        wallet = WalletData(address="0:ab", addressFriendly="UQab", chain=chain)
        assert wallet.network is network
