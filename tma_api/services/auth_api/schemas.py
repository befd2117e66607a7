# tma_api/services/auth_api/schemas.py
"""
Модели запросов и конверт ответов Auth API.

Все ответы: {success, data?, error?{code, message}, timestamp}.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from tma_api.common.constants import ErrorCode


# === ENVELOPE ===

def now_ms() -> int:
    """Текущее время в миллисекундах (поле timestamp)."""
    return int(time.time() * 1000)


def api_success(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data, "timestamp": now_ms()}


def api_failure(code: ErrorCode, message: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code.value, "message": message},
        "timestamp": now_ms(),
    }


# === REQUEST MODELS ===

class LoginRequest(BaseModel):
    """
    Запрос входа.
    Прочие поля тела (например, referralCode) игнорируются: реферальный код
    принимается только из подписанного start_param.
    """

    model_config = ConfigDict(extra="ignore")

    init_data: Optional[str] = Field(None, alias="initData")


class WalletPayload(BaseModel):
    """Кошелёк из TON Connect."""

    address: Optional[str] = None
    addressFriendly: Optional[str] = None
    chain: Optional[int] = None
    appName: Optional[str] = None


class WalletConnectRequest(BaseModel):
    """Запрос привязки кошелька."""

    telegram_id: Optional[int] = None
    wallet: Optional[WalletPayload] = None


class WalletDisconnectRequest(BaseModel):
    """Запрос отвязки кошелька."""

    telegram_id: Optional[int] = None


# === HEALTH ===

class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
