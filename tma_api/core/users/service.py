# tma_api/core/users/service.py
"""
Сервис пользователей: вход через Telegram (upsert) и реферальная атрибуция.
"""

from __future__ import annotations

from typing import Optional

from tma_api.common.constants import TypeMsg
from tma_api.common.logger import log_info, log_warning
from tma_api.core.auth.models import TelegramUser
from tma_api.core.users.models import (
    LoginResult,
    UserRecord,
    build_offline_user,
    generate_referral_code,
)
from tma_api.core.users.referrals import ReferralResolver
from tma_api.core.users.repository import UserRepository


class UserService:
    """
    Сопоставляет проверенного пользователя Telegram с записью в БД.

    Без репозитория (БД не настроена или недоступна) работает в offline-режиме:
    возвращает синтезированную запись, которая нигде не сохраняется.
    """

    def __init__(
        self,
        repository: Optional[UserRepository],
        referrals: Optional[ReferralResolver] = None,
    ) -> None:
        self._repository = repository
        if referrals is None and repository is not None:
            referrals = ReferralResolver(repository)
        self._referrals = referrals

    @property
    def is_offline(self) -> bool:
        return self._repository is None

    async def login(
        self,
        identity: TelegramUser,
        referral_code: Optional[str] = None,
    ) -> LoginResult:
        """
        Создаёт пользователя при первом входе или обновляет профиль.

        Реферальный код учитывается только для нового пользователя;
        у существующего referrer_id никогда не меняется.

        Raises:
            DatabaseError: ошибка хранилища
        """
        if self._repository is None:
            await log_warning(f"БД не настроена, пользователь {identity.id} не сохраняется")
            return LoginResult(
                user=build_offline_user(identity),
                is_new_user=True,
                referral_applied=False,
                persisted=False,
            )

        existing = await self._repository.get_by_telegram_id(identity.id)

        referrer_id: Optional[int] = None
        if existing is None and referral_code and self._referrals is not None:
            await log_info(f"Обработка реферального кода: {referral_code}", type_msg=TypeMsg.DEBUG)
            referrer_id = await self._referrals.resolve(referral_code, identity.id)

        result = await self._repository.upsert(
            identity,
            referral_code=generate_referral_code(),
            referrer_id=referrer_id,
        )
        user = result.user
        is_new_user = result.inserted if result.inserted is not None else user.looks_newly_created()

        # Параллельный вход мог вставить запись раньше нас. Тогда referrer_id
        # в строке пришёл от того запроса, и атрибуция этого не применена.
        referral_applied = (
            is_new_user
            and referrer_id is not None
            and user.referrer_id == referrer_id
        )

        if is_new_user:
            await log_info(f"Новый пользователь: {user.telegram_id} (@{user.username})", type_msg=TypeMsg.INFO)
        else:
            await log_info(f"Вход пользователя: {user.telegram_id} (@{user.username})", type_msg=TypeMsg.DEBUG)

        return LoginResult(
            user=user,
            is_new_user=is_new_user,
            referral_applied=referral_applied,
        )

    async def get_referrals(self, telegram_id: int) -> list[UserRecord]:
        """Пользователи, приглашённые telegram_id, новые первыми."""
        if self._repository is None:
            return []
        return await self._repository.list_referrals(telegram_id)
