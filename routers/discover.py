from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.discovery import CandidateRead
from services import discovery
from utils.user_helpers import to_candidate_read

router = APIRouter(prefix="/discover", tags=["discover"])


@router.get(
    "",
    response_model=List[CandidateRead],
    summary="Получить ленту кандидатов, отсортированную по совместимости"
)
async def discover_candidates(
    age_min: int = Query(18, ge=18, le=120),
    age_max: int = Query(100, ge=18, le=120),
    limit: int = Query(20, ge=1, le=discovery.MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[CandidateRead]:
    candidates = await discovery.discover(
        db, current_user.id, age_min=age_min, age_max=age_max, limit=limit
    )
    return [to_candidate_read(c) for c in candidates]
