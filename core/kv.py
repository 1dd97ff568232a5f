"""Key-value хранилище с TTL поверх таблицы kv_entries.

Тут живут ключи блокировок, флаги ограничений и счётчики rate limit.
Атомарность держится на первичном ключе: upsert / insert-if-absent.
Просроченные записи считаются отсутствующими и вычищаются при записи.
"""
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import Integer, String, cast, delete, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from models.kv_entry import KVEntry

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class KeyValueStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERTS[dialect](KVEntry)
        except KeyError:
            raise RuntimeError(f"Unsupported dialect for key-value store: {dialect}")

    @staticmethod
    def _alive(now):
        return or_(KVEntry.expires_at.is_(None), KVEntry.expires_at > now)

    @staticmethod
    def _expiry(now, ttl: Optional[int]):
        return now + timedelta(seconds=ttl) if ttl else None

    async def _purge_expired(self, key: str, now) -> None:
        await self.db.execute(
            delete(KVEntry).where(KVEntry.key == key, KVEntry.expires_at <= now)
        )

    async def get(self, key: str) -> Optional[str]:
        now = clock.utcnow()
        res = await self.db.execute(
            select(KVEntry.value).where(KVEntry.key == key, self._alive(now))
        )
        return res.scalar_one_or_none()

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def put(self, key: str, value, ttl: Optional[int] = None) -> None:
        now = clock.utcnow()
        stmt = self._insert().values(key=key, value=str(value), expires_at=self._expiry(now, ttl))
        stmt = stmt.on_conflict_do_update(
            index_elements=[KVEntry.key],
            set_={"value": stmt.excluded.value, "expires_at": stmt.excluded.expires_at},
        )
        await self.db.execute(stmt)

    async def add(self, key: str, value, ttl: Optional[int] = None) -> bool:
        """Записывает ключ, только если его нет. True — запись наша."""
        now = clock.utcnow()
        await self._purge_expired(key, now)
        stmt = self._insert().values(key=key, value=str(value), expires_at=self._expiry(now, ttl))
        stmt = stmt.on_conflict_do_nothing(index_elements=[KVEntry.key])
        res = await self.db.execute(stmt)
        return res.rowcount == 1

    async def incr(self, key: str, ttl: int) -> int:
        """Увеличивает счётчик; новый счётчик создаётся со сроком ttl, срок не продлевается."""
        now = clock.utcnow()
        await self._purge_expired(key, now)
        stmt = self._insert().values(key=key, value="1", expires_at=self._expiry(now, ttl))
        stmt = stmt.on_conflict_do_update(
            index_elements=[KVEntry.key],
            set_={"value": cast(cast(KVEntry.value, Integer) + 1, String)},
        )
        await self.db.execute(stmt)
        return int(await self.get(key) or 0)

    async def delete(self, key: str) -> None:
        await self.db.execute(delete(KVEntry).where(KVEntry.key == key))

    async def list(self, prefix: str) -> List[str]:
        now = clock.utcnow()
        res = await self.db.execute(
            select(KVEntry.key)
            .where(KVEntry.key.startswith(prefix, autoescape=True), self._alive(now))
            .order_by(KVEntry.key)
        )
        return [row[0] for row in res.all()]
