# tma_api/core/users/wallets.py
"""
Привязка TON-кошелька к пользователю.
Один адрес — не более одного пользователя.
"""

from __future__ import annotations

from typing import Optional

from tma_api.common.constants import TypeMsg
from tma_api.common.logger import log_info, log_warning
from tma_api.core.users.models import UserRecord, WalletData
from tma_api.core.users.repository import UserRepository


class WalletService:
    """Подключение и отключение кошелька."""

    def __init__(self, repository: Optional[UserRepository]) -> None:
        """
        Args:
            repository: Репозиторий пользователей; None — offline-режим
        """
        self._repository = repository

    async def connect(self, telegram_id: int, wallet: WalletData) -> Optional[UserRecord]:
        """
        Привязывает кошелёк к пользователю.

        Returns:
            Обновлённая запись или None, если пользователь не найден,
            адрес привязан к другому пользователю или БД не настроена
        """
        if self._repository is None:
            await log_warning("Привязка кошелька недоступна: БД не настроена")
            return None

        owner = await self._repository.get_by_wallet_address(wallet.address)
        if owner is not None and owner.telegram_id != telegram_id:
            await log_warning(
                f"Кошелёк уже привязан к другому пользователю, запрос от {telegram_id}",
                extra={"wallet_address": wallet.address},
            )
            return None

        network = wallet.network
        if network is None:
            await log_warning(
                f"Неизвестная сеть TON (chain {wallet.chain}), кошелёк привязывается как есть",
                extra={"wallet_address": wallet.address},
            )

        user = await self._repository.set_wallet(telegram_id, wallet)
        if user is None:
            await log_warning(f"Не удалось привязать кошелёк пользователю {telegram_id}")
            return None

        await log_info(
            f"Кошелёк привязан: {telegram_id} -> {wallet.address_friendly} ({network.name if network else wallet.chain})",
            type_msg=TypeMsg.INFO,
        )
        return user

    async def disconnect(self, telegram_id: int) -> Optional[UserRecord]:
        """
        Отвязывает кошелёк. Повторная отвязка — не ошибка.

        Returns:
            Обновлённая запись или None, если пользователь не найден
        """
        if self._repository is None:
            await log_warning("Отвязка кошелька недоступна: БД не настроена")
            return None

        user = await self._repository.clear_wallet(telegram_id)
        if user is None:
            await log_warning(f"Отвязка кошелька: пользователь {telegram_id} не найден")
            return None

        await log_info(f"Кошелёк отвязан: {telegram_id}", type_msg=TypeMsg.INFO)
        return user
