"""Жалобы, автомодерация и блокировки.

Флаги ограничений не копятся счётчиком: каждый раз они выводятся заново из
истории жалоб за окно, поэтому их всегда можно пересчитать по журналу.
Блокировки и флаги лежат в key-value хранилище с TTL.
"""
import logging
from datetime import timedelta
from typing import Optional, Set

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from core.config import settings
from core.errors import InvalidInput, NotFound, RateLimited, require_identity, store_errors
from core.kv import KeyValueStore
from models.abuse_report import (
    AbuseReport,
    REPORT_STATUSES,
    REPORT_TYPES,
    SYSTEM_REPORT_TYPE,
    SYSTEM_REPORTER_ID,
)
from models.user import User

logger = logging.getLogger(__name__)

RESTRICTED = "restricted"
FLAGGED = "flagged"


def block_key(user_id: int, target_id: int) -> str:
    return f"blocked:{user_id}:{target_id}"


def restricted_key(user_id: int) -> str:
    return f"user_restricted:{user_id}"


def flagged_key(user_id: int) -> str:
    return f"user_flagged:{user_id}"


def report_guard_key(reporter_id: int, target_id: int) -> str:
    return f"report_guard:{reporter_id}:{target_id}"


def _ids_from_keys(keys, position: int) -> Set[int]:
    ids = set()
    for key in keys:
        parts = key.split(":")
        if len(parts) > position and parts[position].isdigit():
            ids.add(int(parts[position]))
    return ids


@store_errors
async def report(
    db: AsyncSession,
    reporter_id: Optional[int],
    reported_user_id: Optional[int],
    report_type: Optional[str],
    description: Optional[str],
) -> AbuseReport:
    require_identity(reporter_id)
    if not reported_user_id or not report_type or not description or not description.strip():
        raise InvalidInput("Missing required fields")
    if reported_user_id == reporter_id:
        raise InvalidInput("Cannot report yourself")
    if report_type not in REPORT_TYPES:
        raise InvalidInput("Invalid report type", allowed=list(REPORT_TYPES))

    if await db.get(User, reported_user_id) is None:
        raise NotFound("Reported user not found")

    now = clock.utcnow()
    since = now - timedelta(seconds=settings.REPORT_COOLDOWN_SECONDS)
    recent = await db.execute(
        select(AbuseReport.id)
        .where(
            AbuseReport.reporter_id == reporter_id,
            AbuseReport.reported_user_id == reported_user_id,
            AbuseReport.created_at > since,
        )
        .limit(1)
    )
    if recent.scalar_one_or_none() is not None:
        raise RateLimited("You can only report the same user once per 24 hours")

    # Параллельные запросы одного репортера упираются в один ключ
    kv = KeyValueStore(db)
    claimed = await kv.add(
        report_guard_key(reporter_id, reported_user_id), "1", ttl=settings.REPORT_COOLDOWN_SECONDS
    )
    if not claimed:
        await db.rollback()
        raise RateLimited("You can only report the same user once per 24 hours")

    abuse_report = AbuseReport(
        reporter_id=reporter_id,
        reported_user_id=reported_user_id,
        report_type=report_type,
        description=description.strip(),
        status="pending",
        created_at=now,
    )
    db.add(abuse_report)
    await db.flush()

    await evaluate_restrictions(db, reported_user_id)
    await db.commit()
    return abuse_report


async def count_recent_reports(db: AsyncSession, user_id: int) -> int:
    since = clock.utcnow() - timedelta(days=settings.REPORT_WINDOW_DAYS)
    res = await db.execute(
        select(func.count(AbuseReport.id)).where(
            AbuseReport.reported_user_id == user_id,
            AbuseReport.created_at > since,
            AbuseReport.status != "dismissed",
            AbuseReport.reporter_id != SYSTEM_REPORTER_ID,
        )
    )
    return res.scalar_one()


async def evaluate_restrictions(
    db: AsyncSession, user_id: int, *, clear_stale: bool = False
) -> Optional[str]:
    """Выставляет флаг по числу жалоб за окно. Коммит остаётся за вызывающим."""
    count = await count_recent_reports(db, user_id)
    kv = KeyValueStore(db)

    if count >= settings.REPORT_RESTRICT_THRESHOLD:
        # Уже действующее ограничение не продлевается и не пишет новую системную жалобу
        if await kv.exists(restricted_key(user_id)):
            return RESTRICTED
        await kv.put(restricted_key(user_id), "true", ttl=settings.RESTRICT_TTL_SECONDS)
        db.add(AbuseReport(
            reporter_id=SYSTEM_REPORTER_ID,
            reported_user_id=user_id,
            report_type=SYSTEM_REPORT_TYPE,
            description=f"Auto-restricted due to multiple reports ({count})",
            status="investigating",
            created_at=clock.utcnow(),
        ))
        logger.warning("User %s auto-restricted after %s reports", user_id, count)
        return RESTRICTED

    if clear_stale:
        await kv.delete(restricted_key(user_id))

    if count >= settings.REPORT_FLAG_THRESHOLD:
        await kv.put(flagged_key(user_id), "true", ttl=settings.FLAG_TTL_SECONDS)
        logger.info("User %s flagged after %s reports", user_id, count)
        return FLAGGED

    if clear_stale:
        await kv.delete(flagged_key(user_id))
    return None


async def restriction_level(db: AsyncSession, user_id: int) -> Optional[str]:
    kv = KeyValueStore(db)
    if await kv.exists(restricted_key(user_id)):
        return RESTRICTED
    if await kv.exists(flagged_key(user_id)):
        return FLAGGED
    return None


async def restricted_user_ids(db: AsyncSession) -> Set[int]:
    return _ids_from_keys(await KeyValueStore(db).list("user_restricted:"), 1)


async def flagged_user_ids(db: AsyncSession) -> Set[int]:
    return _ids_from_keys(await KeyValueStore(db).list("user_flagged:"), 1)


@store_errors
async def update_report_status(db: AsyncSession, report_id: int, status: str) -> AbuseReport:
    if status not in REPORT_STATUSES:
        raise InvalidInput("Invalid report status", allowed=list(REPORT_STATUSES))
    abuse_report = await db.get(AbuseReport, report_id)
    if abuse_report is None:
        raise NotFound("Report not found")

    abuse_report.status = status
    await db.flush()
    if abuse_report.reporter_id != SYSTEM_REPORTER_ID:
        await evaluate_restrictions(db, abuse_report.reported_user_id, clear_stale=True)
    await db.commit()
    return abuse_report


@store_errors
async def safety_stats(db: AsyncSession) -> dict:
    since = clock.utcnow() - timedelta(days=30)
    res = await db.execute(
        select(
            func.count(AbuseReport.id),
            func.sum(case((AbuseReport.status == "resolved", 1), else_=0)),
            func.sum(case((AbuseReport.status == "pending", 1), else_=0)),
            func.sum(case((AbuseReport.created_at > since, 1), else_=0)),
        ).where(AbuseReport.reporter_id != SYSTEM_REPORTER_ID)
    )
    total, resolved, pending, recent = res.one()
    return {
        "total_reports": total or 0,
        "resolved_reports": resolved or 0,
        "pending_reports": pending or 0,
        "recent_reports": recent or 0,
    }


@store_errors
async def block(db: AsyncSession, user_id: Optional[int], target_id: Optional[int]) -> bool:
    from services import matches

    require_identity(user_id)
    if not target_id or target_id == user_id:
        raise InvalidInput("Invalid user to block")
    if await db.get(User, target_id) is None:
        raise NotFound("User not found")

    kv = KeyValueStore(db)
    await kv.put(block_key(user_id, target_id), "true", ttl=settings.BLOCK_TTL_SECONDS)
    await kv.put(block_key(target_id, user_id), "true", ttl=settings.BLOCK_TTL_SECONDS)
    await matches.block_pair(db, user_id, target_id)
    await db.commit()

    logger.info("User %s blocked %s", user_id, target_id)
    return True


@store_errors
async def unblock(db: AsyncSession, user_id: Optional[int], target_id: Optional[int]) -> bool:
    from services import matches

    require_identity(user_id)
    if not target_id or target_id == user_id:
        raise InvalidInput("User ID required")

    kv = KeyValueStore(db)
    await kv.delete(block_key(user_id, target_id))
    await kv.delete(block_key(target_id, user_id))
    await matches.release_block(db, user_id, target_id)
    await db.commit()

    logger.info("User %s unblocked %s", user_id, target_id)
    return True


@store_errors
async def is_blocked(db: AsyncSession, user_id: int, target_id: int) -> bool:
    # Ключи пишутся парой, достаточно проверить одно направление
    return await KeyValueStore(db).exists(block_key(user_id, target_id))


@store_errors
async def list_blocked(db: AsyncSession, user_id: int) -> Set[int]:
    keys = await KeyValueStore(db).list(f"blocked:{user_id}:")
    return _ids_from_keys(keys, 2)
