import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from schemas.admin import (
    ReportStatusResponse,
    ReportStatusUpdate,
    ResetDbRequest,
    ResetDbResponse,
)
from services import trust
from utils.drop_db import async_drop_database

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("uvicorn.error")


def _check_password(password: str) -> None:
    if not settings.ADMIN_PASSWORD:
        logger.warning("Попытка админ-операции при не настроенном ADMIN_PASSWORD")
        raise HTTPException(status_code=503, detail="Пароль для админ-операций не настроен")
    if password != settings.ADMIN_PASSWORD:
        raise HTTPException(status_code=403, detail="Неверный пароль")


@router.put(
    "/reports/{report_id}",
    response_model=ReportStatusResponse,
    summary="Изменить статус жалобы и пересчитать ограничения",
)
async def update_report_status(
    report_id: int,
    payload: ReportStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> ReportStatusResponse:
    _check_password(payload.password)
    report = await trust.update_report_status(db, report_id, payload.status)
    restriction = await trust.restriction_level(db, report.reported_user_id)
    logger.info("Report %s moved to %s, user %s restriction=%s", report.id, report.status, report.reported_user_id, restriction)
    return ReportStatusResponse(id=report.id, status=report.status, restriction=restriction)


@router.post(
    "/reset-db",
    response_model=ResetDbResponse,
    summary="Очистить базу и пересоздать таблицы",
)
async def reset_db(payload: ResetDbRequest) -> ResetDbResponse:
    _check_password(payload.password)

    try:
        await async_drop_database()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Очистка БД завершилась ошибкой: %s", exc)
        raise HTTPException(status_code=500, detail="Не удалось очистить базу") from exc

    return ResetDbResponse(status="ok")
