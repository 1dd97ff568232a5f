from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.safety import SuccessResponse
from schemas.tag import (
    TagCategoryRead,
    TagRead,
    UserTagAssign,
    UserTagIntensityUpdate,
    UserTagRead,
)
from services import tags
from utils.user_helpers import to_user_tag_read, to_user_tag_reads

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=List[TagRead], summary="Справочник кодов")
async def list_tags(
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[TagRead]:
    return [TagRead.model_validate(t) for t in await tags.list_catalog(db, category)]


@router.get("/categories", response_model=List[TagCategoryRead], summary="Категории кодов")
async def list_categories(db: AsyncSession = Depends(get_db)) -> List[TagCategoryRead]:
    return [TagCategoryRead(**row) for row in await tags.list_categories(db)]


@router.get("/search", response_model=List[TagRead], summary="Поиск по метке и значению")
async def search_tags(
    q: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> List[TagRead]:
    return [TagRead.model_validate(t) for t in await tags.search_catalog(db, q)]


@router.get("/me", response_model=List[UserTagRead], summary="Мои коды")
async def my_tags(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[UserTagRead]:
    return to_user_tag_reads(await tags.list_user_tags(db, current_user.id))


@router.post(
    "/me",
    response_model=UserTagRead,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить код в профиль"
)
async def assign_tag(
    payload: UserTagAssign,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserTagRead:
    assignment = await tags.assign_tag(db, current_user.id, payload.tag_id, payload.intensity)
    return to_user_tag_read(assignment)


@router.put("/me/{tag_id}", response_model=UserTagRead, summary="Изменить интенсивность кода")
async def update_tag_intensity(
    tag_id: int,
    payload: UserTagIntensityUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserTagRead:
    assignment = await tags.update_intensity(db, current_user.id, tag_id, payload.intensity)
    return to_user_tag_read(assignment)


@router.delete("/me/{tag_id}", response_model=SuccessResponse, summary="Убрать код из профиля")
async def remove_tag(
    tag_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    return SuccessResponse(success=await tags.remove_tag(db, current_user.id, tag_id))


@router.get("/{tag_id}", response_model=TagRead, summary="Код по ID")
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)) -> TagRead:
    return TagRead.model_validate(await tags.get_tag(db, tag_id))
