# tma_api/core/users/__init__.py
"""
Домен пользователей: upsert при входе, рефералы, кошельки.
"""

from tma_api.core.users.models import LoginResult, UpsertResult, UserRecord, WalletData
from tma_api.core.users.referrals import ReferralResolver
from tma_api.core.users.repository import UserRepository
from tma_api.core.users.service import UserService
from tma_api.core.users.wallets import WalletService

__all__ = [
    "LoginResult",
    "UpsertResult",
    "UserRecord",
    "WalletData",
    "ReferralResolver",
    "UserRepository",
    "UserService",
    "WalletService",
]
