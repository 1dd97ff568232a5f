# utils/seed_db.py
import asyncio
import logging
import random
from datetime import timedelta

from sqlalchemy import select

from core import clock
from core.database import AsyncSessionLocal, engine
from models.registry import Base, PreferenceTag, User, UserPreferenceTag

log = logging.getLogger(__name__)

NUM_USERS = 20
MAX_TAGS_PER_USER = 5

# (метка, категория, значение для left, значение для right)
CATALOG = [
    ("Black", "classic", "Leather culture, gives direction", "Leather culture, follows direction"),
    ("Grey", "classic", "Bondage, ties", "Bondage, is tied"),
    ("Navy", "classic", "Active partner", "Receptive partner"),
    ("Light Blue", "classic", "Gives oral attention", "Receives oral attention"),
    ("Red", "classic", "Intense play, gives", "Intense play, receives"),
    ("Yellow", "fetish", "Watersports, gives", "Watersports, receives"),
    ("Orange", "lifestyle", "Anything goes, now", "Not looking right now"),
    ("Lavender", "lifestyle", "Drag-friendly, dresses", "Drag-friendly, admires"),
    ("Purple", "lifestyle", "Piercing enthusiast, pierces", "Piercing enthusiast, is pierced"),
    ("Teal", "social", "Cock and ball play, gives", "Cock and ball play, receives"),
    ("White", "social", "Light touch, gives", "Light touch, receives"),
    ("Green", "social", "Buys the drinks", "Is looking for a sponsor"),
]

USERNAMES = [
    "alex", "sam", "jordan", "taylor", "morgan", "casey", "jamie", "reese", "drew", "quinn",
    "riley", "avery", "cameron", "logan", "hayden", "peyton", "skyler", "dakota", "emerson", "kai",
]
PRONOUNS = ["he/him", "she/her", "they/them"]
CITIES = ["San Francisco", "New York", None]
VISIBILITY = ["public", "public", "community", "private"]


async def seed_catalog(session) -> list:
    existing = (await session.execute(select(PreferenceTag))).scalars().all()
    if existing:
        return list(existing)

    now = clock.utcnow()
    tags = []
    for label, category, left_meaning, right_meaning in CATALOG:
        for polarity, meaning in (("left", left_meaning), ("right", right_meaning)):
            tag = PreferenceTag(
                label=label,
                polarity=polarity,
                category=category,
                meaning=meaning,
                description=f"{label} worn on the {polarity}",
                created_at=now,
            )
            session.add(tag)
            tags.append(tag)
    await session.commit()
    return tags


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        tags = await seed_catalog(session)

        now = clock.utcnow()
        users = []
        for i in range(NUM_USERS):
            user = User(
                username=f"{USERNAMES[i % len(USERNAMES)]}{i}",
                display_name=USERNAMES[i % len(USERNAMES)].title(),
                age=random.randint(18, 60),
                pronouns=random.choice(PRONOUNS),
                location_city=random.choice(CITIES),
                profile_visibility=random.choice(VISIBILITY),
                last_active=now - timedelta(minutes=random.randint(0, 60 * 24 * 7)),
                created_at=now,
            )
            session.add(user)
            users.append(user)
        await session.commit()

        # Коды с одной меткой назначаются не больше одного раза на пользователя
        for user in users:
            picked = {}
            for tag in random.sample(tags, random.randint(1, MAX_TAGS_PER_USER)):
                picked.setdefault(tag.label, tag)
            for tag in picked.values():
                session.add(UserPreferenceTag(
                    user_id=user.id,
                    tag_id=tag.id,
                    polarity=tag.polarity,
                    intensity=random.randint(1, 10),
                    created_at=now,
                ))
        await session.commit()

    log.info("DB seeded: %s tags, %s users", len(tags), NUM_USERS)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
