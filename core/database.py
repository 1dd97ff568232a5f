import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from .config import settings

logger = logging.getLogger(__name__)

engine_options = {
    "echo": False,
    "future": True,
    "pool_pre_ping": True,   # проверка соединения перед использованием
}
if settings.DATABASE_URL.startswith("sqlite"):
    # aiosqlite держит соединение в потоке своего event loop
    engine_options["poolclass"] = NullPool

engine = create_async_engine(settings.DATABASE_URL, **engine_options)
logger.debug("Database engine created for %s", engine.url.render_as_string(hide_password=True))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Асинхронный генератор сессии.
    Используется как Depends(get_db) в роутерах.
    """
    async with AsyncSessionLocal() as session:
        yield session
