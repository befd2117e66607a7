#!/usr/bin/env python3
"""
Entrypoint для Auth API (контейнер).

Запуск:
    python entrypoints/entrypoint_auth_api.py

Порт по умолчанию: 3001 (AUTH_API_PORT)
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from tma_api.config import settings
from tma_api.common.logger import log_info
from tma_api.common.constants import TypeMsg


async def main() -> None:
    """Запуск Auth API без автоперезагрузки."""
    await log_info(
        f"Запуск Auth API на порту {settings.api.AUTH_API_PORT} ({settings.system.ENVIRONMENT.value})",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "tma_api.services.auth_api.app:app",
        host=settings.api.AUTH_API_HOST,
        port=settings.api.AUTH_API_PORT,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
