import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.safety import (
    BlockedListRead,
    BlockRequest,
    BlockStatusRead,
    ReportCreate,
    ReportRead,
    SafetyStatsRead,
    SuccessResponse,
)
from services import trust
from utils.user_helpers import to_blocked_user_read

router = APIRouter(prefix="/safety", tags=["safety"])
logger = logging.getLogger("uvicorn.error")


@router.post(
    "/report",
    response_model=ReportRead,
    status_code=status.HTTP_201_CREATED,
    summary="Пожаловаться на пользователя"
)
async def submit_report(
    payload: ReportCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ReportRead:
    report = await trust.report(
        db,
        current_user.id,
        payload.reported_user_id,
        payload.report_type,
        payload.description,
    )
    logger.info("Report %s filed by %s against %s", report.id, current_user.id, report.reported_user_id)
    return ReportRead.model_validate(report)


@router.post(
    "/block",
    response_model=SuccessResponse,
    summary="Заблокировать пользователя (взаимно)"
)
async def block_user(
    payload: BlockRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    return SuccessResponse(success=await trust.block(db, current_user.id, payload.user_id))


@router.post(
    "/unblock",
    response_model=SuccessResponse,
    summary="Разблокировать пользователя"
)
async def unblock_user(
    payload: BlockRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    return SuccessResponse(success=await trust.unblock(db, current_user.id, payload.user_id))


@router.get(
    "/blocked",
    response_model=BlockedListRead,
    summary="Список заблокированных"
)
async def blocked_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> BlockedListRead:
    blocked_ids = await trust.list_blocked(db, current_user.id)
    if not blocked_ids:
        return BlockedListRead(blocked_users=[])

    res = await db.execute(select(User).where(User.id.in_(sorted(blocked_ids))).order_by(User.id))
    return BlockedListRead(blocked_users=[to_blocked_user_read(u) for u in res.scalars().all()])


@router.get(
    "/is-blocked/{user_id}",
    response_model=BlockStatusRead,
    summary="Проверить блокировку"
)
async def is_blocked(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> BlockStatusRead:
    return BlockStatusRead(is_blocked=await trust.is_blocked(db, current_user.id, user_id))


@router.get(
    "/stats",
    response_model=SafetyStatsRead,
    summary="Анонимная статистика жалоб"
)
async def safety_stats(db: AsyncSession = Depends(get_db)) -> SafetyStatsRead:
    return SafetyStatsRead(**await trust.safety_stats(db))
