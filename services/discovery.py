"""Лента кандидатов для знакомства."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import exists, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import InvalidInput, NotFound, require_identity, store_errors
from models.match import Match
from models.preference_tag import UserPreferenceTag
from models.user import User
from services import scoring, trust

logger = logging.getLogger(__name__)

DISCOVERABLE_VISIBILITY = ("public", "community")
MAX_LIMIT = 50


@dataclass
class DiscoveryCandidate:
    user: User
    score: float
    shared_tag_ids: Set[int] = field(default_factory=set)
    flagged: bool = False

    @property
    def compatibility_percentage(self) -> int:
        return scoring.as_percentage(self.score)

    @property
    def last_active(self) -> Optional[datetime]:
        return self.user.last_active


def rank(candidates: List[DiscoveryCandidate]) -> List[DiscoveryCandidate]:
    """Оценка по убыванию; при равенстве флагнутые ниже, затем свежая активность."""
    out = sorted(
        candidates,
        key=lambda c: c.last_active.timestamp() if c.last_active else 0.0,
        reverse=True,
    )
    out.sort(key=lambda c: c.flagged)
    out.sort(key=lambda c: c.score, reverse=True)
    return out


@store_errors
async def discover(
    db: AsyncSession,
    user_id: Optional[int],
    age_min: int = 18,
    age_max: int = 100,
    limit: int = 20,
) -> List[DiscoveryCandidate]:
    require_identity(user_id)
    if age_min > age_max:
        raise InvalidInput("age_min must not exceed age_max")
    if limit < 1 or limit > MAX_LIMIT:
        raise InvalidInput(f"limit must be between 1 and {MAX_LIMIT}")

    me = await db.get(User, user_id)
    if me is None:
        raise NotFound("User not found")

    # Любая запись матча с пользователем исключает его из ленты
    already_paired = or_(
        select(Match.id).where(Match.user_low_id == user_id, Match.user_high_id == User.id).exists(),
        select(Match.id).where(Match.user_high_id == user_id, Match.user_low_id == User.id).exists(),
    )
    has_tags = exists().where(UserPreferenceTag.user_id == User.id)

    stmt = select(User).where(
        User.id != user_id,
        User.profile_visibility.in_(DISCOVERABLE_VISIBILITY),
        User.age.between(age_min, age_max),
        not_(already_paired),
        has_tags,
    )
    if me.location_city:
        stmt = stmt.where(or_(User.location_city == me.location_city, User.location_city.is_(None)))

    users = (await db.execute(stmt)).scalars().all()

    excluded = await trust.restricted_user_ids(db) | await trust.list_blocked(db, user_id)
    users = [u for u in users if u.id not in excluded]
    if not users:
        return []

    flagged = await trust.flagged_user_ids(db)
    my_tags = await scoring.load_assignments(db, user_id)
    their_tags = await scoring.load_assignments_for(db, [u.id for u in users])

    candidates: List[DiscoveryCandidate] = []
    for user in users:
        result = scoring.score(my_tags, their_tags[user.id])
        # ниже порога у пары практически нет общего
        if result.score <= settings.DISCOVERY_SCORE_FLOOR:
            continue
        candidates.append(DiscoveryCandidate(
            user=user,
            score=result.score,
            shared_tag_ids=result.shared_tag_ids,
            flagged=user.id in flagged,
        ))

    logger.debug("Discovery for %s: %s scored of %s eligible", user_id, len(candidates), len(users))
    return rank(candidates)[:limit]
