"""Ограничение частоты сообщений в переписке.

Счётчик в фиксированном окне, а не скользящий журнал: на стыке двух окон
отправитель может ненадолго превысить лимит. Это принятое приближение.
"""
from core.config import settings
from core.kv import KeyValueStore


class RateLimiter:

    def __init__(
        self,
        kv: KeyValueStore,
        limit: int = settings.MESSAGE_RATE_LIMIT,
        window_seconds: int = settings.MESSAGE_RATE_WINDOW_SECONDS,
    ):
        self.kv = kv
        self.limit = limit
        self.window_seconds = window_seconds

    @staticmethod
    def key(sender_id: int, conversation_id: int) -> str:
        return f"rate_limit:{sender_id}:{conversation_id}"

    async def count(self, sender_id: int, conversation_id: int) -> int:
        value = await self.kv.get(self.key(sender_id, conversation_id))
        return int(value) if value else 0

    async def allow(self, sender_id: int, conversation_id: int) -> bool:
        return await self.count(sender_id, conversation_id) < self.limit

    async def record(self, sender_id: int, conversation_id: int) -> int:
        return await self.kv.incr(self.key(sender_id, conversation_id), ttl=self.window_seconds)
