# tma_api/core/auth/__init__.py
"""
Аутентификация по Telegram initData.
"""

from tma_api.core.auth.init_data import (
    DevelopmentInitDataAuth,
    TelegramInitDataAuth,
    build_auth_strategy,
    parse_init_data,
    verify_init_data,
)
from tma_api.core.auth.models import ParsedInitData, TelegramUser

__all__ = [
    "DevelopmentInitDataAuth",
    "TelegramInitDataAuth",
    "build_auth_strategy",
    "parse_init_data",
    "verify_init_data",
    "ParsedInitData",
    "TelegramUser",
]
