import itertools
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

# Настройки читаются при импорте core.config, поэтому окружение задаём до него
_TMP_DIR = Path(tempfile.mkdtemp(prefix="pulse-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'pulse.db'}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_PASSWORD"] = "admin-pass"

import pytest

from core import clock
from core.database import AsyncSessionLocal
from models.registry import PreferenceTag, User, UserPreferenceTag
from utils.drop_db import async_drop_database


class FrozenClock:

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def frozen_clock(monkeypatch):
    fake = FrozenClock(datetime(2026, 1, 15, 12, 0, 0))
    monkeypatch.setattr(clock, "utcnow", fake)
    return fake


@pytest.fixture
async def db():
    await async_drop_database()
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def factory(**fields) -> User:
        n = next(counter)
        fields.setdefault("username", f"user{n}")
        fields.setdefault("display_name", f"User {n}")
        fields.setdefault("age", 30)
        fields.setdefault("profile_visibility", "public")
        fields.setdefault("last_active", clock.utcnow())
        fields.setdefault("created_at", clock.utcnow())
        user = User(**fields)
        db.add(user)
        await db.commit()
        return user

    return factory


@pytest.fixture
def make_tag(db):
    async def factory(label: str, polarity: str, category: str = "classic") -> PreferenceTag:
        tag = PreferenceTag(
            label=label,
            polarity=polarity,
            category=category,
            meaning=f"{label} on the {polarity}",
            created_at=clock.utcnow(),
        )
        db.add(tag)
        await db.commit()
        return tag

    return factory


@pytest.fixture
def give_tag(db):
    async def factory(user: User, tag: PreferenceTag, intensity: int) -> UserPreferenceTag:
        assignment = UserPreferenceTag(
            user_id=user.id,
            tag_id=tag.id,
            polarity=tag.polarity,
            intensity=intensity,
            created_at=clock.utcnow(),
        )
        db.add(assignment)
        await db.commit()
        return assignment

    return factory
