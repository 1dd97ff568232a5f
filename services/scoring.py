"""Оценка совместимости двух пользователей по их кодам.

Оценка считается со стороны пользователя A: максимум берётся из числа его
кодов, поэтому score(A, B) и score(B, A) могут отличаться. Везде в сервисе
A — тот, кто инициирует действие (запрашивает ленту или предлагает матч).
"""
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.preference_tag import PreferenceTag, UserPreferenceTag

MAX_INTENSITY = 10
COMPLEMENTARY_WEIGHT = 1.5
SAME_POLARITY_WEIGHT = 0.8


@dataclass(frozen=True)
class TagAssignment:
    tag_id: int
    label: str
    polarity: str
    intensity: int


class CompatibilityResult(NamedTuple):
    score: float
    shared_tag_ids: Set[int]


def score(tags_a: Iterable[TagAssignment], tags_b: Iterable[TagAssignment]) -> CompatibilityResult:
    tags_a = list(tags_a)
    if not tags_a:
        return CompatibilityResult(0.0, set())

    # Коды сравниваются по метке: у одной метки бывают записи с разной полярностью
    by_label: Dict[str, TagAssignment] = {}
    for b in tags_b:
        by_label.setdefault(b.label, b)

    total = 0.0
    shared: Set[int] = set()
    for a in tags_a:
        b = by_label.get(a.label)
        if b is None:
            continue
        shared.add(a.tag_id)
        weight = COMPLEMENTARY_WEIGHT if a.polarity != b.polarity else SAME_POLARITY_WEIGHT
        total += weight * min(a.intensity, b.intensity)

    max_possible = MAX_INTENSITY * len(tags_a)
    return CompatibilityResult(min(total / max_possible, 1.0), shared)


def as_percentage(value: float) -> int:
    """0..1 → 0..100, половина округляется вверх."""
    return int(math.floor(value * 100 + 0.5))


async def load_assignments(db: AsyncSession, user_id: int) -> List[TagAssignment]:
    res = await db.execute(
        select(
            UserPreferenceTag.tag_id,
            PreferenceTag.label,
            UserPreferenceTag.polarity,
            UserPreferenceTag.intensity,
        )
        .join(PreferenceTag, PreferenceTag.id == UserPreferenceTag.tag_id)
        .where(UserPreferenceTag.user_id == user_id)
        .order_by(UserPreferenceTag.created_at, UserPreferenceTag.tag_id)
    )
    return [TagAssignment(*row) for row in res.all()]


async def load_assignments_for(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, List[TagAssignment]]:
    """То же для нескольких пользователей одним запросом."""
    user_ids = list(user_ids)
    out: Dict[int, List[TagAssignment]] = {uid: [] for uid in user_ids}
    if not user_ids:
        return out
    res = await db.execute(
        select(
            UserPreferenceTag.user_id,
            UserPreferenceTag.tag_id,
            PreferenceTag.label,
            UserPreferenceTag.polarity,
            UserPreferenceTag.intensity,
        )
        .join(PreferenceTag, PreferenceTag.id == UserPreferenceTag.tag_id)
        .where(UserPreferenceTag.user_id.in_(user_ids))
        .order_by(UserPreferenceTag.created_at, UserPreferenceTag.tag_id)
    )
    for user_id, *fields in res.all():
        out[user_id].append(TagAssignment(*fields))
    return out
