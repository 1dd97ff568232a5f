import pytest

from core.kv import KeyValueStore
from services.rate_limiter import RateLimiter

pytestmark = pytest.mark.anyio


async def test_limit_within_window(db, frozen_clock):
    limiter = RateLimiter(KeyValueStore(db), limit=10, window_seconds=60)

    for expected in range(1, 11):
        assert await limiter.allow(1, 100)
        assert await limiter.record(1, 100) == expected
    await db.commit()

    assert not await limiter.allow(1, 100)
    assert await limiter.allow(2, 100)
    assert await limiter.allow(1, 101)


async def test_window_expiry_resets_counter(db, frozen_clock):
    limiter = RateLimiter(KeyValueStore(db), limit=2, window_seconds=60)
    await limiter.record(1, 100)
    frozen_clock.advance(seconds=30)
    await limiter.record(1, 100)
    assert not await limiter.allow(1, 100)

    # окно фиксированное: вторая запись не продлевает срок
    frozen_clock.advance(seconds=31)

    assert await limiter.count(1, 100) == 0
    assert await limiter.allow(1, 100)
    assert await limiter.record(1, 100) == 1


async def test_kv_add_only_first_writer_wins(db, frozen_clock):
    kv = KeyValueStore(db)

    assert await kv.add("report_guard:1:2", "1", ttl=10)
    assert not await kv.add("report_guard:1:2", "1", ttl=10)

    frozen_clock.advance(seconds=11)
    assert await kv.add("report_guard:1:2", "1", ttl=10)


async def test_kv_list_skips_expired(db, frozen_clock):
    kv = KeyValueStore(db)
    await kv.put("blocked:1:2", "true", ttl=5)
    await kv.put("blocked:1:3", "true")
    await kv.put("blocked:10:4", "true")

    frozen_clock.advance(seconds=6)

    assert await kv.list("blocked:1:") == ["blocked:1:3"]
