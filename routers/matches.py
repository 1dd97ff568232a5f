from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.match import MatchCreate, MatchListItem, MatchRead, MatchStatsRead
from services import matches
from utils.user_helpers import to_match_list_item, to_match_read

router = APIRouter(prefix="/matches", tags=["matches"])


@router.post(
    "",
    response_model=MatchRead,
    status_code=status.HTTP_201_CREATED,
    summary="Предложить матч пользователю"
)
async def propose_match(
    payload: MatchCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchRead:
    match = await matches.propose(db, current_user.id, payload.target_user_id)
    return to_match_read(match)


@router.get(
    "",
    response_model=List[MatchListItem],
    summary="Список ваших матчей с собеседником и непрочитанными"
)
async def list_my_matches(
    status_filter: str = Query("all", alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[MatchListItem]:
    overviews = await matches.list_matches(db, current_user.id, status_filter)
    return [to_match_list_item(o) for o in overviews]


@router.get(
    "/stats",
    response_model=MatchStatsRead,
    summary="Статистика матчей"
)
async def my_match_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchStatsRead:
    return MatchStatsRead(**await matches.match_stats(db, current_user.id))


@router.put(
    "/{match_id}/accept",
    response_model=MatchRead,
    summary="Принять матч"
)
async def accept_match(
    match_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchRead:
    return to_match_read(await matches.accept(db, match_id, current_user.id))


@router.put(
    "/{match_id}/decline",
    response_model=MatchRead,
    summary="Отклонить матч"
)
async def decline_match(
    match_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchRead:
    return to_match_read(await matches.decline(db, match_id, current_user.id))
