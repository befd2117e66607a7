# tests/common/test_constants.py
"""
Тесты для модуля констант.
"""

from tma_api.common.constants import (
    Environment,
    ErrorCode,
    TypeMsg,
    UserRole,
    WalletChain,
)


class TestTypeMsg:
    """Тесты для enum TypeMsg."""

    def test_type_msg_values(self) -> None:
        assert TypeMsg.DEBUG.value == "debug"
        assert TypeMsg.INFO.value == "info"
        assert TypeMsg.WARNING.value == "warning"
        assert TypeMsg.ERROR.value == "error"
        assert TypeMsg.CRITICAL.value == "critical"

    def test_type_msg_is_str_enum(self) -> None:
        assert isinstance(TypeMsg.DEBUG, str)
        assert TypeMsg.INFO == "info"


class TestUserRole:
    """Тесты для enum UserRole."""

    def test_user_role_values(self) -> None:
        assert UserRole.USER == "user"
        assert UserRole.ADMIN == "admin"


class TestEnvironment:
    """Тесты для enum Environment."""

    def test_values(self) -> None:
        assert {e.value for e in Environment} == {"development", "test", "production"}

    def test_from_string(self) -> None:
        assert Environment("production") is Environment.PRODUCTION


class TestWalletChain:
    def test_chain_ids(self) -> None:
        assert WalletChain.MAINNET == -239
        assert WalletChain.TESTNET == -3


class TestErrorCode:
    """Коды ошибок API совпадают со своими именами."""

    def test_codes_match_names(self) -> None:
        for code in ErrorCode:
            assert code.value == code.name

    def test_all_codes_present(self) -> None:
        expected = {
            "MISSING_INIT_DATA",
            "INVALID_SIGNATURE",
            "PARSE_ERROR",
            "DATABASE_ERROR",
            "INTERNAL_ERROR",
            "INVALID_REQUEST",
            "NOT_IMPLEMENTED",
            "MISSING_TELEGRAM_ID",
            "INVALID_TELEGRAM_ID",
            "MISSING_WALLET_DATA",
            "WALLET_CONNECT_FAILED",
            "WALLET_DISCONNECT_FAILED",
        }
        assert {code.value for code in ErrorCode} == expected
