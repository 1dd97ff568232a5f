from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.message import (
    ConversationRead,
    MarkReadResponse,
    MessageCreate,
    MessagePageRead,
    MessageRead,
    MessageStatsRead,
)
from services import messages
from utils.user_helpers import to_conversation_read

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get(
    "/conversations",
    response_model=List[ConversationRead],
    summary="Список переписок по принятым матчам"
)
async def list_conversations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ConversationRead]:
    conversations = await messages.list_conversations(db, current_user.id)
    return [to_conversation_read(c, current_user.id) for c in conversations]


@router.get(
    "/stats/overview",
    response_model=MessageStatsRead,
    summary="Статистика сообщений"
)
async def my_message_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageStatsRead:
    return MessageStatsRead(**await messages.message_stats(db, current_user.id))


@router.delete(
    "/item/{message_id}",
    response_model=MessageRead,
    summary="Удалить своё сообщение (в течение 5 минут)"
)
async def delete_message(
    message_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageRead:
    message = await messages.delete_message(db, message_id, current_user.id)
    return MessageRead.model_validate(message)


@router.get(
    "/{match_id}",
    response_model=MessagePageRead,
    summary="Сообщения матча (помечает входящие прочитанными)"
)
async def list_messages(
    match_id: int,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessagePageRead:
    page = await messages.list_messages(db, match_id, current_user.id, limit=limit, offset=offset)
    return MessagePageRead(
        messages=[MessageRead.model_validate(m) for m in page.messages],
        count=len(page.messages),
        has_more=page.has_more,
    )


@router.post(
    "/{match_id}",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Отправить сообщение"
)
async def send_message(
    match_id: int,
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageRead:
    message = await messages.send_message(db, match_id, current_user.id, payload.content)
    return MessageRead.model_validate(message)


@router.put(
    "/{match_id}/read",
    response_model=MarkReadResponse,
    summary="Пометить входящие сообщения прочитанными"
)
async def mark_read(
    match_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MarkReadResponse:
    marked = await messages.mark_read(db, match_id, current_user.id)
    return MarkReadResponse(marked_as_read=marked)
