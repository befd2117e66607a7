# tma_api/infra/database.py
"""
Менеджер базы данных PostgreSQL.
Пул соединений asyncpg, транзакции, применение схемы при старте.

Запросы не повторяются автоматически: ошибка уходит вызывающему коду.
Повтор есть только у первичного подключения (БД может подниматься дольше API).
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import asyncpg
from asyncpg import Connection, Pool, Record

from tma_api.common.constants import TypeMsg
from tma_api.common.logger import log_error, log_info

# Произвольный ID advisory lock для применения схемы
SCHEMA_LOCK_ID = 746_201_901

CONNECTION_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionRefusedError,
    OSError,
    asyncio.TimeoutError,
)


class DatabaseManager:
    """
    Менеджер подключений к PostgreSQL.
    Один пул на процесс (Singleton).
    """

    _instance: DatabaseManager | None = None
    _pool: Pool | None = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._pool = None

    @property
    def pool(self) -> Pool:
        """Возвращает пул соединений."""
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(
        self,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: int = 30,
        attempts: int = 3,
        delay: float = 1.0,
    ) -> None:
        """
        Создаёт пул соединений к PostgreSQL.

        Args:
            dsn: DSN строка подключения
            min_size: Минимальный размер пула
            max_size: Максимальный размер пула
            command_timeout: Таймаут команд (секунды)
            attempts: Сколько раз пытаться подключиться
            delay: Базовая задержка между попытками (секунды, растёт линейно)

        Raises:
            Последнюю ошибку подключения, если все попытки неудачны
        """
        if self._pool is not None:
            return

        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=dsn,
                    min_size=min_size,
                    max_size=max_size,
                    command_timeout=command_timeout,
                )
                await log_info("Подключение к PostgreSQL установлено", type_msg=TypeMsg.INFO)
                return
            except CONNECTION_ERRORS as e:
                last_error = e
                if attempt < attempts:
                    await log_info(
                        f"Ошибка подключения к БД (попытка {attempt}/{attempts}): {e}",
                        type_msg=TypeMsg.WARNING,
                    )
                    await asyncio.sleep(delay * attempt)

        await log_error(f"Не удалось подключиться к БД после {attempts} попыток: {last_error}")
        raise last_error  # type: ignore[misc]

    async def disconnect(self) -> None:
        """Закрывает пул соединений."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        """
        Соединение из пула.

        Example:
            async with db.acquire() as conn:
                rows = await conn.fetch("SELECT * FROM users")
        """
        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """Соединение в транзакции: commit при успехе, rollback при ошибке."""
        async with self.pool.acquire() as connection:
            async with connection.transaction():
                yield connection

    async def fetch(self, query: str, *args: Any) -> list[Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args, column=column)

    async def health_check(self) -> bool:
        """True, если БД отвечает на SELECT 1."""
        if self._pool is None:
            return False
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False


def get_db() -> DatabaseManager:
    """Возвращает глобальный экземпляр DatabaseManager."""
    return DatabaseManager()


async def init_db() -> DatabaseManager | None:
    """
    Подключается к БД и применяет схему.

    Returns:
        DatabaseManager или None, если БД не настроена или недоступна
        (сервис продолжит работу в offline-режиме)
    """
    from tma_api.config import settings

    cfg = settings.database
    if not cfg.is_configured:
        await log_info("PostgreSQL не настроен, offline-режим", type_msg=TypeMsg.WARNING)
        return None

    db = get_db()
    try:
        await db.connect(
            dsn=cfg.dsn,
            min_size=cfg.DB_MIN_POOL_SIZE,
            max_size=cfg.DB_MAX_POOL_SIZE,
            command_timeout=cfg.DB_COMMAND_TIMEOUT,
            attempts=cfg.DB_CONNECT_ATTEMPTS,
            delay=cfg.DB_CONNECT_DELAY,
        )
    except CONNECTION_ERRORS as e:
        await log_error(f"PostgreSQL недоступен ({cfg.DB_HOST}:{cfg.DB_PORT}), offline-режим: {e}")
        return None

    await log_info(f"PostgreSQL подключён: {cfg.DB_HOST}:{cfg.DB_PORT}/{cfg.DB_NAME}", type_msg=TypeMsg.INFO)
    await _init_schema(db)
    return db


async def _init_schema(db: DatabaseManager) -> None:
    """Применяет migrations/init.sql под advisory lock."""
    from tma_api.config.loader import get_project_root

    schema_path = get_project_root() / "migrations" / "init.sql"
    if not schema_path.exists():
        await log_error(f"Файл схемы БД не найден: {schema_path}")
        return

    schema_sql = schema_path.read_text(encoding="utf-8")

    await log_info("Применение схемы БД...", type_msg=TypeMsg.INFO)
    async with db.transaction() as conn:
        await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_ID)
        await conn.execute(schema_sql)
    await log_info("Схема БД успешно применена", type_msg=TypeMsg.INFO)


async def close_db() -> None:
    """Закрывает подключение к базе данных."""
    await get_db().disconnect()
