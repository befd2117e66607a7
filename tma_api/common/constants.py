# tma_api/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей."""
    USER = "user"
    ADMIN = "admin"


class Environment(str, Enum):
    """Режим запуска процесса."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class WalletChain(int, Enum):
    """Идентификаторы сетей TON (TON Connect)."""
    MAINNET = -239
    TESTNET = -3


class ErrorCode(str, Enum):
    """Коды ошибок API (поле error.code в ответе)."""
    MISSING_INIT_DATA = "MISSING_INIT_DATA"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    PARSE_ERROR = "PARSE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    MISSING_TELEGRAM_ID = "MISSING_TELEGRAM_ID"
    INVALID_TELEGRAM_ID = "INVALID_TELEGRAM_ID"
    MISSING_WALLET_DATA = "MISSING_WALLET_DATA"
    WALLET_CONNECT_FAILED = "WALLET_CONNECT_FAILED"
    WALLET_DISCONNECT_FAILED = "WALLET_DISCONNECT_FAILED"


# Ключ, которым Telegram подписывает initData Mini App
WEBAPP_DATA_KEY = b"WebAppData"

# Mock initData для локальной разработки вне Telegram
MOCK_INIT_DATA = "mock_data"
MOCK_PREFIX = "mock_"
MOCK_START_PARAM_SEPARATOR = "|"

# Пользователь по умолчанию для "mock_data"
MOCK_DEFAULT_USER_ID = 123456789

# Реферальный код: "r" + 15 символов
REFERRAL_CODE_PREFIX = "r"
REFERRAL_CODE_LENGTH = 15

# Допуск эвристики "новый пользователь" (created_at ~ updated_at)
NEW_USER_TOLERANCE_SECONDS = 1.0
