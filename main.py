import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings
from core.database import engine
from core.errors import EngineError
from models.registry import Base

from routers.discover import router as discover_router
from routers.matches import router as matches_router
from routers.messages import router as messages_router
from routers.safety import router as safety_router
from routers.tags import router as tags_router
from routers.health import router as health_router
from routers.admin import router as admin_router

app = FastAPI(
    title="Pulse Backend",
    version="0.1.0",
    description="Matching & Trust Engine: совместимость, матчи, переписка и модерация"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],        # Или список ваших фронтенд-адресов
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


app.include_router(discover_router)
app.include_router(matches_router)
app.include_router(messages_router)
app.include_router(safety_router)
app.include_router(tags_router)
app.include_router(health_router)
app.include_router(admin_router)


@app.on_event("startup")
async def on_startup():
    # Создаём все таблицы
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.DEBUG:
        logger.warning("Pulse backend is running in DEBUG mode")


@app.get("/")
async def root():
    return {"message": "Pulse Backend"}


@app.on_event("shutdown")
async def shutdown():
    # Закрываем все соединения пула
    await engine.dispose()
