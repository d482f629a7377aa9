# -*- coding: utf-8 -*-
"""
Точка входа FastAPI-приложения движка сборки тестов.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from exam_assembly.api.v1.assembly import router as assembly_router
from exam_assembly.clients.database_client import async_engine, dispose_engines
from exam_assembly.config.logger import (configure_logger, get_system_logger,
                                         setup_uvicorn_logging)
from exam_assembly.config.settings import settings
from exam_assembly.service.test_assembler import create_assembler
from exam_assembly.utils.exceptions import APIException

logger = configure_logger(__name__)

app = FastAPI(
    title="Exam Assembly API",
    description="API сборки тестов с пакетной загрузкой ответов",
    version="0.1.0",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
    openapi_url="/api/v1/openapi.json",
    openapi_tags=[
        {
            "name": "🧪 Сборка тестов",
            "description": "Сборка тестов, прогрессивная загрузка ответов и кэш сборок",
        },
    ],
)

# Сборщик запросов; маршруты получают его через get_assembler
app.state.assembler = create_assembler()


# Middleware для логирования всех запросов
@app.middleware("http")
async def log_all_requests(request: Request, call_next):
    if request.url.path.startswith("/api/"):
        logger.info(f"🌐 API запрос: {request.method} {request.url.path}")

    try:
        response = await call_next(request)

        if request.url.path.startswith("/api/"):
            if response.status_code >= 400:
                logger.warning(
                    f"❌ API ошибка: {request.method} {request.url.path} → {response.status_code}"
                )
            else:
                logger.info(
                    f"✅ API ответ: {request.method} {request.url.path} → {response.status_code}"
                )

        return response

    except Exception as e:
        if request.url.path.startswith("/api/"):
            logger.error(
                f"💥 Критическая ошибка API: {request.method} {request.url.path}"
            )
            logger.exception(f"Детали ошибки: {str(e)[:1000]}")
        raise


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Ответ с кодом ошибки для исключений API."""
    error_code = getattr(exc.error_code, "value", exc.error_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": error_code},
        headers=exc.headers,
    )


app.include_router(
    assembly_router, prefix="/api/v1/assembly", tags=["🧪 Сборка тестов"]
)


@app.on_event("startup")
async def startup_event():
    setup_uvicorn_logging()
    system_logger = get_system_logger()

    db_status = "❌"
    cache_status = "❌"

    logger.info("🔧 Инициализация сервисов...")
    logger.info(f"⚙️ Конфигурация: {settings.get_config_source()}")

    # Проверяем подключение к базе данных
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "✅"
        logger.info("✅ База данных подключена")
    except Exception as e:
        # Без БД движок продолжает отвечать деградированными сборками
        logger.error(f"❌ Ошибка базы данных: {e}")
        db_status = "⚠️"

    # Проверяем кэш
    try:
        await app.state.assembler.cache.stats()
        cache_status = "✅"
        logger.info(f"✅ Кэш сборок готов ({settings.cache_backend})")
    except Exception as e:
        logger.error(f"❌ Ошибка кэша: {e}")
        logger.warning("⚠️ Продолжаем работу без кэширования сборок")
        cache_status = "⚠️"

    system_logger.info(f"📊 Статус сервисов: БД: {db_status} Кэш: {cache_status}")


@app.on_event("shutdown")
async def shutdown_event():
    """Обработчик завершения приложения"""
    logger.info("🛑 Завершение работы Exam Assembly API")
    await app.state.assembler.cache.close()
    await dispose_engines()


@app.get("/api/v1/health")
async def api_health():
    """Проверка живости приложения."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "exam_assembly.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,
    )
