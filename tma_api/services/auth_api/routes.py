# tma_api/services/auth_api/routes.py
"""
Маршруты /auth: вход через Telegram, рефералы, кошелёк.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query, status

from tma_api.common.constants import ErrorCode
from tma_api.common.exceptions import ApiError, InitDataParseError
from tma_api.common.logger import log_warning
from tma_api.core.auth.init_data import TelegramInitDataAuth
from tma_api.core.users.models import WalletData
from tma_api.core.users.service import UserService
from tma_api.core.users.wallets import WalletService
from tma_api.services.auth_api.dependencies import (
    get_auth_strategy,
    get_user_service,
    get_wallet_service,
)
from tma_api.services.auth_api.schemas import (
    LoginRequest,
    WalletConnectRequest,
    WalletDisconnectRequest,
    api_success,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(
    auth: Annotated[TelegramInitDataAuth, Depends(get_auth_strategy)],
    service: Annotated[UserService, Depends(get_user_service)],
    request: Optional[LoginRequest] = None,
) -> dict[str, Any]:
    """
    Вход через Telegram initData.

    1. Проверка подписи
    2. Разбор user и start_param
    3. Upsert пользователя (+ реферал для нового)
    """
    init_data = request.init_data if request is not None else None
    if not init_data:
        raise ApiError(ErrorCode.MISSING_INIT_DATA, "initData is required")

    if not auth.verify(init_data):
        raise ApiError(
            ErrorCode.INVALID_SIGNATURE,
            "Telegram data validation failed",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    try:
        parsed = auth.parse(init_data)
    except InitDataParseError as e:
        await log_warning(f"Не удалось разобрать initData: {e}")
        raise ApiError(ErrorCode.PARSE_ERROR, "Failed to parse user data") from e

    result = await service.login(parsed.user, referral_code=parsed.start_param)

    return api_success({
        "user": result.user,
        "isNewUser": result.is_new_user,
        "referralApplied": result.referral_applied,
        "offline": not result.persisted,
    })


@router.get("/me")
async def me() -> dict[str, Any]:
    """Профиль текущего пользователя (пока не реализован)."""
    raise ApiError(
        ErrorCode.NOT_IMPLEMENTED,
        "Use /auth/login to authenticate",
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
    )


@router.get("/referrals")
async def get_referrals(
    service: Annotated[UserService, Depends(get_user_service)],
    telegram_id: Optional[str] = Query(default=None),
) -> dict[str, Any]:
    """Пользователи, приглашённые telegram_id, новые первыми."""
    if not telegram_id:
        raise ApiError(ErrorCode.MISSING_TELEGRAM_ID, "telegram_id is required")

    try:
        user_id = int(telegram_id)
    except ValueError:
        raise ApiError(ErrorCode.INVALID_TELEGRAM_ID, "telegram_id must be an integer")

    return api_success(await service.get_referrals(user_id))


@router.post("/wallet/connect")
async def connect_wallet(
    wallets: Annotated[WalletService, Depends(get_wallet_service)],
    request: Optional[WalletConnectRequest] = None,
) -> dict[str, Any]:
    """Привязать TON-кошелёк к пользователю."""
    request = request or WalletConnectRequest()
    if request.telegram_id is None:
        raise ApiError(ErrorCode.MISSING_TELEGRAM_ID, "telegram_id is required")

    payload = request.wallet
    if payload is None or not payload.address or not payload.addressFriendly or payload.chain is None:
        raise ApiError(
            ErrorCode.MISSING_WALLET_DATA,
            "wallet.address, wallet.addressFriendly and wallet.chain are required",
        )

    wallet = WalletData(
        address=payload.address,
        address_friendly=payload.addressFriendly,
        chain=payload.chain,
        app_name=payload.appName,
    )

    user = await wallets.connect(request.telegram_id, wallet)
    if user is None:
        raise ApiError(
            ErrorCode.WALLET_CONNECT_FAILED,
            "Failed to connect wallet: unknown user or wallet already linked to another account",
        )

    return api_success(user)


@router.post("/wallet/disconnect")
async def disconnect_wallet(
    wallets: Annotated[WalletService, Depends(get_wallet_service)],
    request: Optional[WalletDisconnectRequest] = None,
) -> dict[str, Any]:
    """
    Отвязать кошелёк. Повторная отвязка возвращает запись без изменений.
    Пустое тело запроса равносильно {}.
    """
    request = request or WalletDisconnectRequest()
    if request.telegram_id is None:
        raise ApiError(ErrorCode.MISSING_TELEGRAM_ID, "telegram_id is required")

    user = await wallets.disconnect(request.telegram_id)
    if user is None:
        raise ApiError(ErrorCode.WALLET_DISCONNECT_FAILED, "Failed to disconnect wallet: unknown user")

    return api_success(user)
