# tma_api/core/users/referrals.py
"""
Реферальная атрибуция: код приглашения -> Telegram ID пригласившего.
"""

from __future__ import annotations

from typing import Optional

from tma_api.common.constants import TypeMsg
from tma_api.common.logger import log_info, log_warning
from tma_api.core.users.repository import UserRepository


class ReferralResolver:
    """
    Находит пригласившего по реферальному коду.

    Неизвестный код и самоприглашение не ошибки: возвращается None.
    Код сравнивается как есть, без обрезки пробелов.
    Вызывается только при создании пользователя (контролирует UserService).
    """

    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    async def resolve(self, code: str, requesting_id: int) -> Optional[int]:
        """
        Args:
            code: Реферальный код из подписанного start_param
            requesting_id: Telegram ID создаваемого пользователя

        Returns:
            Telegram ID пригласившего или None
        """
        if not code:
            return None

        referrer = await self._repository.get_by_referral_code(code)

        if referrer is None:
            await log_warning(f"Неизвестный реферальный код: {code}")
            return None

        if referrer.telegram_id == requesting_id:
            await log_warning(
                f"Попытка самоприглашения заблокирована: {requesting_id}",
                extra={"referral_code": code},
            )
            return None

        await log_info(
            f"Реферал принят: {requesting_id} приглашён {referrer.telegram_id}",
            type_msg=TypeMsg.INFO,
        )
        return referrer.telegram_id
