# tma_api/common/__init__.py
"""
Общие утилиты, константы, исключения и логгер.
"""

from tma_api.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from tma_api.common.constants import TypeMsg, ErrorCode
from tma_api.common.exceptions import ApiError, DatabaseError, InitDataParseError

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "ErrorCode",
    "ApiError",
    "DatabaseError",
    "InitDataParseError",
]
