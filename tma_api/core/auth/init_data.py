# tma_api/core/auth/init_data.py
"""
Проверка подписи и разбор Telegram Mini App initData.
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app

Режим окружения выбирается один раз при старте через build_auth_strategy():
- TelegramInitDataAuth — только настоящие подписанные initData;
- DevelopmentInitDataAuth — дополнительно принимает mock-строки
  ("mock_data", "mock_<id>", "mock_<id>|<start_param>") для разработки вне Telegram.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from urllib.parse import parse_qsl

from pydantic import ValidationError

from tma_api.common.constants import (
    Environment,
    MOCK_DEFAULT_USER_ID,
    MOCK_INIT_DATA,
    MOCK_PREFIX,
    MOCK_START_PARAM_SEPARATOR,
    WEBAPP_DATA_KEY,
)
from tma_api.common.exceptions import InitDataParseError
from tma_api.common.logger import get_logger
from tma_api.core.auth.models import ParsedInitData, TelegramUser

logger = get_logger("auth")


# =============================================================================
# ПОДПИСЬ
# =============================================================================

def build_data_check_string(pairs: list[tuple[str, str]]) -> str:
    """Пары key=value без hash, отсортированные по ключу и склеенные через \\n."""
    return "\n".join(
        f"{key}={value}"
        for key, value in sorted(pairs, key=lambda pair: pair[0])
        if key != "hash"
    )


def compute_signature(data_check_string: str, bot_token: str) -> str:
    """
    Подпись initData.

    secret_key = HMAC-SHA256(key="WebAppData", msg=bot_token)
    signature  = hex(HMAC-SHA256(key=secret_key, msg=data_check_string))
    """
    secret_key = hmac.new(
        key=WEBAPP_DATA_KEY,
        msg=bot_token.encode(),
        digestmod=hashlib.sha256,
    ).digest()

    return hmac.new(
        key=secret_key,
        msg=data_check_string.encode(),
        digestmod=hashlib.sha256,
    ).hexdigest()


def verify_init_data(init_data: str, bot_token: str, max_age_seconds: int = 0) -> bool:
    """
    Проверяет, что initData подписаны Telegram для этого бота.

    Args:
        init_data: URL-encoded строка Telegram.WebApp.initData
        bot_token: Токен бота
        max_age_seconds: Максимальный возраст auth_date (0 — не проверять)

    Returns:
        True, если подпись совпала. Никогда не бросает исключений.
    """
    if not bot_token:
        logger.error("BOT_TOKEN не настроен, initData отклонены")
        return False

    try:
        pairs = parse_qsl(init_data, keep_blank_values=True)
        received = [value for key, value in pairs if key == "hash"]
        if not received:
            logger.warning("В initData отсутствует hash")
            return False

        calculated = compute_signature(build_data_check_string(pairs), bot_token)

        if not hmac.compare_digest(calculated.encode(), received[0].encode()):
            logger.warning("Подпись initData не совпала")
            return False

        if max_age_seconds > 0:
            auth_date = int(_first_values(pairs).get("auth_date", "0"))
            if time.time() - auth_date > max_age_seconds:
                logger.warning(f"initData устарели (auth_date={auth_date})")
                return False

        return True
    except Exception as e:
        logger.error(f"Ошибка проверки initData: {e}")
        return False


# =============================================================================
# РАЗБОР
# =============================================================================

def _first_values(pairs: list[tuple[str, str]]) -> dict[str, str]:
    """Первое значение каждого ключа (повторы игнорируются)."""
    values: dict[str, str] = {}
    for key, value in pairs:
        values.setdefault(key, value)
    return values


def parse_init_data(init_data: str) -> ParsedInitData:
    """
    Разбирает проверенные initData.
    Вызывать только после успешного verify_init_data().

    Raises:
        InitDataParseError: нет user, user не JSON или не того формата,
            auth_date не число
    """
    values = _first_values(parse_qsl(init_data, keep_blank_values=True))

    raw_user = values.get("user")
    if not raw_user:
        raise InitDataParseError("В initData отсутствует user")

    try:
        user_data = json.loads(raw_user)
    except json.JSONDecodeError as e:
        raise InitDataParseError(f"Поле user не является JSON: {e}") from e

    if not isinstance(user_data, dict):
        raise InitDataParseError("Поле user должно быть JSON-объектом")

    try:
        user = TelegramUser.model_validate(user_data)
    except ValidationError as e:
        raise InitDataParseError(f"Некорректные данные user: {e.error_count()} ошибок") from e

    try:
        auth_date = int(values.get("auth_date") or 0)
    except ValueError as e:
        raise InitDataParseError("auth_date должен быть целым числом") from e

    return ParsedInitData(
        user=user,
        auth_date=auth_date,
        hash=values.get("hash", ""),
        query_id=values.get("query_id") or None,
        chat_instance=values.get("chat_instance") or None,
        chat_type=values.get("chat_type") or None,
        start_param=values.get("start_param") or None,
    )


# =============================================================================
# MOCK ДЛЯ РАЗРАБОТКИ
# =============================================================================

def is_mock_init_data(init_data: str) -> bool:
    """"mock_data" или любая строка с префиксом "mock_"."""
    return init_data == MOCK_INIT_DATA or init_data.startswith(MOCK_PREFIX)


def java_string_hash(text: str) -> int:
    """
    32-битный знаковый хэш строки (h = h * 31 + code_unit) по UTF-16 code units,
    включая одиночные суррогаты.
    Стабилен между запусками, в отличие от встроенного hash().
    """
    encoded = text.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(encoded), 2):
        h = (h * 31 + int.from_bytes(encoded[i:i + 2], "little")) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def mock_user_id(identifier: str) -> int:
    """Детерминированный Telegram ID для mock-идентификатора."""
    return abs(java_string_hash(identifier)) % 1_000_000_000


def parse_mock_init_data(init_data: str) -> ParsedInitData:
    """
    Синтезирует initData из mock-строки.

    Форматы:
        "mock_data"               → тестовый пользователь 123456789
        "mock_user_b"             → пользователь, производный от "user_b"
        "mock_user_b|r8d3d17b1e6" → то же + start_param (реферальный код)

    Raises:
        InitDataParseError: строка не превращается в корректного пользователя
    """
    try:
        init_data.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InitDataParseError("mock initData содержат одиночные суррогаты") from e

    identifier = init_data
    start_param: str | None = None
    if MOCK_START_PARAM_SEPARATOR in init_data:
        parts = init_data.split(MOCK_START_PARAM_SEPARATOR)
        identifier = parts[0]
        start_param = parts[1] or None

    if identifier == MOCK_INIT_DATA:
        user = TelegramUser(
            id=MOCK_DEFAULT_USER_ID,
            first_name="Test",
            last_name="User",
            username="testuser",
            language_code="en",
            is_premium=False,
        )
    else:
        name = identifier[len(MOCK_PREFIX):]
        try:
            user = TelegramUser(
                id=mock_user_id(name),
                first_name=name[:1].upper() + name[1:].replace("_", " ", 1),
                last_name="User",
                username=name.replace("_", "", 1),
                language_code="en",
                is_premium=False,
            )
        except ValidationError as e:
            raise InitDataParseError(f"Некорректный mock-идентификатор: {e.error_count()} ошибок") from e

    try:
        return ParsedInitData(
            user=user,
            auth_date=int(time.time()),
            hash="mock_hash",
            start_param=start_param,
        )
    except ValidationError as e:
        raise InitDataParseError("Некорректный start_param в mock initData") from e


# =============================================================================
# СТРАТЕГИИ
# =============================================================================

class TelegramInitDataAuth:
    """Проверка и разбор настоящих initData (продакшен)."""

    def __init__(self, bot_token: str, max_age_seconds: int = 0) -> None:
        self._bot_token = bot_token
        self._max_age_seconds = max_age_seconds

    @property
    def accepts_mock(self) -> bool:
        return False

    def verify(self, init_data: str) -> bool:
        return verify_init_data(init_data, self._bot_token, self._max_age_seconds)

    def parse(self, init_data: str) -> ParsedInitData:
        return parse_init_data(init_data)


class DevelopmentInitDataAuth(TelegramInitDataAuth):
    """Разработка: как TelegramInitDataAuth, плюс mock-строки без подписи."""

    @property
    def accepts_mock(self) -> bool:
        return True

    def verify(self, init_data: str) -> bool:
        if is_mock_init_data(init_data):
            logger.info("Mock initData: проверка подписи пропущена")
            return True
        return super().verify(init_data)

    def parse(self, init_data: str) -> ParsedInitData:
        if is_mock_init_data(init_data):
            return parse_mock_init_data(init_data)
        return super().parse(init_data)


def build_auth_strategy(
    environment: Environment,
    bot_token: str,
    max_age_seconds: int = 0,
) -> TelegramInitDataAuth:
    """Выбирает стратегию по окружению. В production mock недоступен."""
    if environment == Environment.PRODUCTION:
        return TelegramInitDataAuth(bot_token, max_age_seconds)
    return DevelopmentInitDataAuth(bot_token, max_age_seconds)
