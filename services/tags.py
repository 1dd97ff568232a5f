"""Справочник кодов и коды, выбранные пользователем."""
import logging
from typing import List, Optional

from sqlalchemy import String, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from core.errors import InvalidInput, NotFound, require_identity, store_errors
from models.preference_tag import PreferenceTag, UserPreferenceTag

logger = logging.getLogger(__name__)

MIN_INTENSITY = 1
MAX_INTENSITY = 10
DEFAULT_INTENSITY = 5


def validate_intensity(intensity) -> int:
    if isinstance(intensity, bool) or not isinstance(intensity, int):
        raise InvalidInput("Intensity must be an integer between 1 and 10")
    if intensity < MIN_INTENSITY or intensity > MAX_INTENSITY:
        raise InvalidInput("Intensity must be between 1 and 10")
    return intensity


@store_errors
async def list_catalog(db: AsyncSession, category: Optional[str] = None) -> List[PreferenceTag]:
    stmt = select(PreferenceTag)
    if category and category != "all":
        stmt = stmt.where(PreferenceTag.category == category)
    stmt = stmt.order_by(PreferenceTag.category, PreferenceTag.label, PreferenceTag.polarity)
    return list((await db.execute(stmt)).scalars().all())


@store_errors
async def list_categories(db: AsyncSession) -> List[dict]:
    res = await db.execute(
        select(PreferenceTag.category, func.count(PreferenceTag.id))
        .group_by(PreferenceTag.category)
        .order_by(PreferenceTag.category)
    )
    return [{"category": category, "count": count} for category, count in res.all()]


@store_errors
async def get_tag(db: AsyncSession, tag_id: int) -> PreferenceTag:
    tag = await db.get(PreferenceTag, tag_id)
    if tag is None:
        raise NotFound("Preference tag not found")
    return tag


@store_errors
async def search_catalog(db: AsyncSession, query: str) -> List[PreferenceTag]:
    query = (query or "").strip().lower()
    if not query:
        raise InvalidInput("Search query is required")

    label = func.lower(PreferenceTag.label, type_=String)
    meaning = func.lower(PreferenceTag.meaning, type_=String)
    description = func.lower(func.coalesce(PreferenceTag.description, ""), type_=String)
    relevance = case(
        (label == query, 1),
        (label.startswith(query, autoescape=True), 2),
        (meaning.contains(query, autoescape=True), 3),
        else_=4,
    )
    res = await db.execute(
        select(PreferenceTag)
        .where(or_(
            label.contains(query, autoescape=True),
            meaning.contains(query, autoescape=True),
            description.contains(query, autoescape=True),
        ))
        .order_by(relevance, PreferenceTag.label, PreferenceTag.polarity)
    )
    return list(res.scalars().all())


@store_errors
async def list_user_tags(db: AsyncSession, user_id: Optional[int]) -> List[UserPreferenceTag]:
    require_identity(user_id)
    res = await db.execute(
        select(UserPreferenceTag)
        .join(PreferenceTag, PreferenceTag.id == UserPreferenceTag.tag_id)
        .where(UserPreferenceTag.user_id == user_id)
        .order_by(UserPreferenceTag.intensity.desc(), PreferenceTag.category, PreferenceTag.label)
    )
    return list(res.scalars().unique().all())


@store_errors
async def assign_tag(
    db: AsyncSession,
    user_id: Optional[int],
    tag_id: Optional[int],
    intensity: int = DEFAULT_INTENSITY,
) -> UserPreferenceTag:
    """Назначает код пользователю. Повторное назначение заменяет интенсивность."""
    require_identity(user_id)
    if not tag_id:
        raise InvalidInput("Preference tag ID is required")
    validate_intensity(intensity)

    tag = await db.get(PreferenceTag, tag_id)
    if tag is None:
        raise NotFound("Preference tag not found")

    assignment = await db.get(UserPreferenceTag, (user_id, tag_id))
    if assignment is None:
        assignment = UserPreferenceTag(
            user_id=user_id,
            tag_id=tag_id,
            tag=tag,
            created_at=clock.utcnow(),
        )
        db.add(assignment)
    assignment.polarity = tag.polarity
    assignment.intensity = intensity
    await db.commit()
    return assignment


@store_errors
async def update_intensity(db: AsyncSession, user_id: Optional[int], tag_id: int, intensity: int) -> UserPreferenceTag:
    require_identity(user_id)
    validate_intensity(intensity)
    assignment = await db.get(UserPreferenceTag, (user_id, tag_id))
    if assignment is None:
        raise NotFound("Preference tag is not assigned")
    assignment.intensity = intensity
    await db.commit()
    return assignment


@store_errors
async def remove_tag(db: AsyncSession, user_id: Optional[int], tag_id: int) -> bool:
    require_identity(user_id)
    res = await db.execute(
        delete(UserPreferenceTag).where(
            UserPreferenceTag.user_id == user_id,
            UserPreferenceTag.tag_id == tag_id,
        )
    )
    await db.commit()
    if not res.rowcount:
        raise NotFound("Preference tag is not assigned")
    return True
