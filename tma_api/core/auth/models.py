# tma_api/core/auth/models.py
"""
Модели данных Telegram initData.
https://core.telegram.org/bots/webapps#webappinitdata
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TelegramUser(BaseModel):
    """Пользователь из поля user в initData."""

    model_config = ConfigDict(extra="ignore")

    id: int
    first_name: str
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None
    is_premium: bool | None = None
    photo_url: str | None = None
    allows_write_to_pm: bool | None = None


class ParsedInitData(BaseModel):
    """Распарсенные initData."""

    user: TelegramUser
    auth_date: int
    hash: str
    query_id: str | None = None
    chat_instance: str | None = None
    chat_type: str | None = None
    start_param: str | None = None
