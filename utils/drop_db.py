import asyncio
import logging

from sqlalchemy import text

from core.database import engine
from models.registry import Base

log = logging.getLogger(__name__)


async def async_drop_database():
    """Удаляет все таблицы и создаёт схему заново."""
    if engine.dialect.name == "postgresql":
        async with engine.connect() as conn:
            conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
            await conn.execute(text("DROP SCHEMA IF EXISTS public CASCADE"))
            await conn.execute(text("CREATE SCHEMA IF NOT EXISTS public"))
            await conn.execute(text("SET search_path TO public"))
    else:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all, checkfirst=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    log.warning("Схема очищена и все таблицы созданы заново.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(async_drop_database())
