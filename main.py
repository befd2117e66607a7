#!/usr/bin/env python3
# main.py
"""
Главная точка входа TMA Auth API.
Запускает uvicorn с приложением tma_api.services.auth_api.app:app.
"""

from __future__ import annotations

import uvicorn

from tma_api.config import settings
from tma_api.common.logger import setup_logging


def main() -> None:
    """Запустить Auth API."""
    setup_logging()

    uvicorn.run(
        "tma_api.services.auth_api.app:app",
        host=settings.api.AUTH_API_HOST,
        port=settings.api.AUTH_API_PORT,
        reload=settings.system.DEBUG and not settings.system.is_production,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
