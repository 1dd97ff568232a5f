"""Жизненный цикл матча: pending → accepted / declined, любое → blocked.

Пара всегда хранится как (low, high), low < high. Уникальный индекс на эту
пару не даёт двум встречным предложениям создать две записи: второе падает
на ограничении и превращается в Conflict.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from core.errors import (
    Conflict,
    Forbidden,
    InvalidInput,
    NotFound,
    Unauthorized,
    require_identity,
    store_errors,
)
from models.match import MATCH_STATUSES, Match
from models.message import Message
from models.user import User
from services import scoring, trust

logger = logging.getLogger(__name__)

# Порядок в списке матчей: сначала принятые, потом ожидающие
STATUS_RANK = {"accepted": 1, "pending": 2}


@dataclass
class MatchOverview:
    match: Match
    partner: User
    unread_count: int
    last_message_at: Optional[datetime]


def canonical_pair(user_a: int, user_b: int) -> Tuple[int, int]:
    if user_a == user_b:
        raise InvalidInput("Invalid target user")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def _pair_clause(low: int, high: int):
    return and_(Match.user_low_id == low, Match.user_high_id == high)


async def find_pair(db: AsyncSession, user_a: int, user_b: int) -> Optional[Match]:
    low, high = canonical_pair(user_a, user_b)
    res = await db.execute(
        select(Match).where(_pair_clause(low, high)).execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def get_for_participant(db: AsyncSession, match_id: int, user_id: int) -> Match:
    match = await db.get(Match, match_id, populate_existing=True)
    if match is None:
        raise NotFound("Match not found")
    if not match.has_participant(user_id):
        raise Unauthorized("Unauthorized")
    return match


@store_errors
async def propose(db: AsyncSession, user_id: Optional[int], target_id: Optional[int]) -> Match:
    require_identity(user_id)
    if not target_id:
        raise InvalidInput("Invalid target user")
    low, high = canonical_pair(user_id, target_id)

    if await db.get(User, target_id) is None:
        raise NotFound("Target user not found")

    existing = await find_pair(db, low, high)
    if existing is not None:
        raise Conflict("Match already exists", status=existing.status, match_id=existing.id)

    if await trust.is_blocked(db, user_id, target_id):
        raise Forbidden("Cannot propose a match to a blocked user")

    # Оценка со стороны инициатора
    result = scoring.score(
        await scoring.load_assignments(db, user_id),
        await scoring.load_assignments(db, target_id),
    )

    now = clock.utcnow()
    match = Match(
        user_low_id=low,
        user_high_id=high,
        compatibility_score=result.score,
        shared_tag_ids=sorted(result.shared_tag_ids),
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(match)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await find_pair(db, low, high)
        if existing is None:
            raise
        raise Conflict("Match already exists", status=existing.status, match_id=existing.id)

    logger.info("Match %s proposed %s→%s score=%.2f", match.id, user_id, target_id, result.score)
    return match


@store_errors
async def accept(db: AsyncSession, match_id: int, user_id: Optional[int]) -> Match:
    require_identity(user_id)
    match = await get_for_participant(db, match_id, user_id)
    if match.status == "accepted":
        return match
    if match.status != "pending":
        raise Forbidden(f"Cannot accept a {match.status} match", status=match.status)

    await db.execute(
        update(Match)
        .where(Match.id == match.id, Match.status == "pending")
        .values(status="accepted", updated_at=clock.utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(match)

    # Параллельный decline/block мог успеть раньше
    if match.status != "accepted":
        raise Forbidden(f"Cannot accept a {match.status} match", status=match.status)
    return match


@store_errors
async def decline(db: AsyncSession, match_id: int, user_id: Optional[int]) -> Match:
    require_identity(user_id)
    match = await get_for_participant(db, match_id, user_id)
    if match.status == "blocked":
        raise Forbidden("Cannot decline a blocked match", status=match.status)

    res = await db.execute(
        update(Match)
        .where(Match.id == match.id, Match.status != "blocked")
        .values(status="declined", updated_at=clock.utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(match)
    if res.rowcount == 0:
        raise Forbidden("Cannot decline a blocked match", status=match.status)
    return match


async def block_pair(db: AsyncSession, user_a: int, user_b: int) -> int:
    """Системный переход в blocked из любого состояния. Коммит за вызывающим."""
    low, high = canonical_pair(user_a, user_b)
    res = await db.execute(
        update(Match)
        .where(_pair_clause(low, high))
        .values(status="blocked", updated_at=clock.utcnow())
        .execution_options(synchronize_session=False)
    )
    return res.rowcount


async def release_block(db: AsyncSession, user_a: int, user_b: int) -> int:
    """После явного unblock матч закрывается как declined, но не открывается заново."""
    low, high = canonical_pair(user_a, user_b)
    res = await db.execute(
        update(Match)
        .where(_pair_clause(low, high), Match.status == "blocked")
        .values(status="declined", updated_at=clock.utcnow())
        .execution_options(synchronize_session=False)
    )
    return res.rowcount


@store_errors
async def list_matches(db: AsyncSession, user_id: Optional[int], status: str = "all") -> List[MatchOverview]:
    require_identity(user_id)
    if status != "all" and status not in MATCH_STATUSES:
        raise InvalidInput("Invalid status filter", allowed=["all", *MATCH_STATUSES])

    stmt = select(Match).where(
        or_(Match.user_low_id == user_id, Match.user_high_id == user_id)
    ).execution_options(populate_existing=True)
    if status != "all":
        stmt = stmt.where(Match.status == status)
    matches = (await db.execute(stmt)).scalars().all()
    if not matches:
        return []

    match_ids = [m.id for m in matches]
    res = await db.execute(
        select(
            Message.match_id,
            func.max(Message.created_at),
            func.sum(case((and_(Message.sender_id != user_id, Message.read_at.is_(None)), 1), else_=0)),
        )
        .where(Message.match_id.in_(match_ids))
        .group_by(Message.match_id)
    )
    message_info = {match_id: (last_at, unread or 0) for match_id, last_at, unread in res.all()}

    out: List[MatchOverview] = []
    for match in matches:
        partner = await db.get(User, match.partner_of(user_id))
        if partner is None:
            continue
        last_at, unread = message_info.get(match.id, (None, 0))
        out.append(MatchOverview(match=match, partner=partner, unread_count=unread, last_message_at=last_at))

    # Сортировки стабильные: от младшего ключа к старшему
    out.sort(key=lambda o: o.match.created_at, reverse=True)
    out.sort(key=lambda o: o.last_message_at.timestamp() if o.last_message_at else 0.0, reverse=True)
    out.sort(key=lambda o: STATUS_RANK.get(o.match.status, 3))
    return out


@store_errors
async def match_stats(db: AsyncSession, user_id: Optional[int]) -> dict:
    require_identity(user_id)
    res = await db.execute(
        select(
            func.count(Match.id),
            func.sum(case((Match.status == "pending", 1), else_=0)),
            func.sum(case((Match.status == "accepted", 1), else_=0)),
            func.sum(case((Match.status == "declined", 1), else_=0)),
            func.sum(case((Match.status == "blocked", 1), else_=0)),
            func.avg(Match.compatibility_score),
        ).where(or_(Match.user_low_id == user_id, Match.user_high_id == user_id))
    )
    total, pending, accepted, declined, blocked, avg_score = res.one()
    return {
        "total_matches": total or 0,
        "pending_matches": pending or 0,
        "accepted_matches": accepted or 0,
        "declined_matches": declined or 0,
        "blocked_matches": blocked or 0,
        "avg_compatibility": float(avg_score or 0.0),
        "avg_compatibility_percentage": scoring.as_percentage(float(avg_score or 0.0)),
    }
