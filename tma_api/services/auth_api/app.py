# tma_api/services/auth_api/app.py
"""
FastAPI приложение Auth API для Telegram Mini App.

Endpoints:
- POST /auth/login - вход через Telegram initData
- GET /auth/me - профиль (501, не реализован)
- GET /auth/referrals?telegram_id= - приглашённые пользователи
- POST /auth/wallet/connect - привязать TON-кошелёк
- POST /auth/wallet/disconnect - отвязать TON-кошелёк
- GET /health - проверка здоровья
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tma_api import __version__
from tma_api.common.constants import ErrorCode, TypeMsg
from tma_api.common.exceptions import ApiError, DatabaseError
from tma_api.common.logger import log_error, log_info, log_warning, setup_logging
from tma_api.config import settings
from tma_api.infra.database import close_db, get_db, init_db
from tma_api.services.auth_api.dependencies import (
    cleanup_dependencies,
    get_auth_strategy,
    init_dependencies,
)
from tma_api.services.auth_api.routes import router
from tma_api.services.auth_api.schemas import HealthStatus, api_failure


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    setup_logging()
    await log_info("Запуск Auth API...", type_msg=TypeMsg.INFO)

    if not settings.telegram.BOT_TOKEN:
        await log_warning("BOT_TOKEN не задан: все настоящие initData будут отклонены")

    db = await init_db()
    init_dependencies(
        db=db,
        environment=settings.system.ENVIRONMENT,
        bot_token=settings.telegram.BOT_TOKEN,
        init_data_max_age=settings.telegram.INIT_DATA_MAX_AGE_SECONDS,
    )
    if get_auth_strategy().accepts_mock:
        await log_warning(
            f"Режим {settings.system.ENVIRONMENT.value}: mock initData принимаются без подписи"
        )

    yield

    await log_info("Остановка Auth API...", type_msg=TypeMsg.INFO)
    cleanup_dependencies()
    if db is not None:
        await close_db()


# === APP ===

app = FastAPI(
    title="TMA Auth API",
    description="Аутентификация Telegram Mini App, рефералы и привязка TON-кошелька.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.ALLOWED_ORIGINS,
    allow_origin_regex=r"https://.*\.vercel\.app",
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Telegram-Init-Data"],
)

app.include_router(router)


# === ERROR HANDLERS ===

def _public_message(default: str, exc: Exception) -> str:
    """В production детали исключений клиенту не отдаются."""
    if settings.system.is_production:
        return default
    return str(exc) or default


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=api_failure(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    await log_warning(f"Некорректный запрос {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=api_failure(ErrorCode.INVALID_REQUEST, "Malformed request body"),
    )


@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    await log_error(f"Ошибка БД в {request.method} {request.url.path}: {exc.cause or exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=api_failure(ErrorCode.DATABASE_ERROR, _public_message("Database operation failed", exc)),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log_error(f"Необработанная ошибка в {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=api_failure(ErrorCode.INTERNAL_ERROR, _public_message("An unexpected error occurred", exc)),
    )


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса."""
    db = get_db()
    if not db.is_connected:
        postgres = "offline"
    elif await db.health_check():
        postgres = "healthy"
    else:
        postgres = "unhealthy"

    return HealthStatus(
        service="auth_api",
        status="healthy" if postgres != "unhealthy" else "degraded",
        version=__version__,
        dependencies={"postgres": postgres},
    )


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api.AUTH_API_HOST, port=settings.api.AUTH_API_PORT)
