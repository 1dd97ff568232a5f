"""Переписка внутри принятого матча."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from core.config import settings
from core.errors import (
    Forbidden,
    InvalidInput,
    NotFound,
    RateLimited,
    require_identity,
    store_errors,
)
from core.kv import KeyValueStore
from models.match import Match
from models.message import Message
from models.user import User
from services.matches import get_for_participant
from services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DELETED_PLACEHOLDER = "[Message deleted]"


@dataclass
class MessagePage:
    messages: List[Message]
    has_more: bool


@dataclass
class Conversation:
    match: Match
    partner: User
    last_message: Optional[Message]
    unread_count: int


async def _get_open_conversation(db: AsyncSession, match_id: int, user_id: int) -> Match:
    match = await get_for_participant(db, match_id, user_id)
    if match.status != "accepted":
        raise Forbidden("Can only message accepted matches", status=match.status)
    return match


@store_errors
async def send_message(
    db: AsyncSession,
    match_id: int,
    sender_id: Optional[int],
    content: Optional[str],
) -> Message:
    """Пользователь пишет только текст; тип system ставит сам движок при удалении."""
    require_identity(sender_id)
    if not content or not content.strip():
        raise InvalidInput("Message content is required")
    if len(content) > settings.MESSAGE_MAX_LENGTH:
        raise InvalidInput(f"Message too long (max {settings.MESSAGE_MAX_LENGTH} characters)")

    match = await _get_open_conversation(db, match_id, sender_id)

    limiter = RateLimiter(KeyValueStore(db))
    if not await limiter.allow(sender_id, match.id):
        raise RateLimited("Rate limit exceeded. Please wait before sending more messages.")

    message = Message(
        match_id=match.id,
        sender_id=sender_id,
        content=content.strip(),
        message_type="text",
        created_at=clock.utcnow(),
    )
    db.add(message)
    await db.flush()
    await limiter.record(sender_id, match.id)
    await db.commit()
    return message


@store_errors
async def list_messages(
    db: AsyncSession,
    match_id: int,
    user_id: Optional[int],
    limit: int = 50,
    offset: int = 0,
) -> MessagePage:
    require_identity(user_id)
    match = await _get_open_conversation(db, match_id, user_id)

    res = await db.execute(
        select(Message)
        .where(Message.match_id == match.id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
        .offset(offset)
        .execution_options(populate_existing=True)
    )
    messages = list(res.scalars().all())

    # Прочитанными становятся только чужие сообщения из этой страницы
    now = clock.utcnow()
    unread = [m for m in messages if m.sender_id != user_id and m.read_at is None]
    if unread:
        await db.execute(
            update(Message)
            .where(Message.id.in_([m.id for m in unread]))
            .values(read_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        for m in unread:
            m.read_at = now

    messages.reverse()
    return MessagePage(messages=messages, has_more=len(messages) == limit)


@store_errors
async def mark_read(db: AsyncSession, match_id: int, user_id: Optional[int]) -> int:
    require_identity(user_id)
    match = await get_for_participant(db, match_id, user_id)
    res = await db.execute(
        update(Message)
        .where(
            Message.match_id == match.id,
            Message.sender_id != user_id,
            Message.read_at.is_(None),
        )
        .values(read_at=clock.utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return res.rowcount or 0


@store_errors
async def delete_message(db: AsyncSession, message_id: int, user_id: Optional[int]) -> Message:
    """Мягкое удаление: текст подменяется заглушкой, строка остаётся."""
    require_identity(user_id)
    message = await db.get(Message, message_id)
    if message is None or message.sender_id != user_id:
        raise NotFound("Message not found or unauthorized")

    window = timedelta(seconds=settings.MESSAGE_DELETE_WINDOW_SECONDS)
    if clock.utcnow() - message.created_at > window:
        raise Forbidden("Can only delete messages within 5 minutes of sending")

    message.content = DELETED_PLACEHOLDER
    message.message_type = "system"
    await db.commit()
    return message


@store_errors
async def list_conversations(db: AsyncSession, user_id: Optional[int]) -> List[Conversation]:
    require_identity(user_id)
    res = await db.execute(
        select(Match).where(
            or_(Match.user_low_id == user_id, Match.user_high_id == user_id),
            Match.status == "accepted",
        )
    )
    matches = res.scalars().all()

    out: List[Conversation] = []
    for match in matches:
        partner = await db.get(User, match.partner_of(user_id))
        if partner is None:
            continue
        last = await db.execute(
            select(Message)
            .where(Message.match_id == match.id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(1)
        )
        unread = await db.execute(
            select(func.count(Message.id)).where(
                Message.match_id == match.id,
                Message.sender_id != user_id,
                Message.read_at.is_(None),
            )
        )
        out.append(Conversation(
            match=match,
            partner=partner,
            last_message=last.scalar_one_or_none(),
            unread_count=unread.scalar_one(),
        ))

    def sort_key(conv: Conversation) -> datetime:
        return conv.last_message.created_at if conv.last_message else datetime.min

    out.sort(key=lambda conv: conv.match.created_at, reverse=True)
    out.sort(key=sort_key, reverse=True)
    return out


@store_errors
async def message_stats(db: AsyncSession, user_id: Optional[int]) -> dict:
    require_identity(user_id)
    res = await db.execute(
        select(
            func.count(func.distinct(Message.match_id)),
            func.sum(case((Message.sender_id == user_id, 1), else_=0)),
            func.sum(case((Message.sender_id != user_id, 1), else_=0)),
            func.sum(case((and_(Message.sender_id != user_id, Message.read_at.is_(None)), 1), else_=0)),
        )
        .join(Match, Match.id == Message.match_id)
        .where(
            or_(Match.user_low_id == user_id, Match.user_high_id == user_id),
            Match.status == "accepted",
        )
    )
    active, sent, received, unread = res.one()
    return {
        "active_conversations": active or 0,
        "total_messages_sent": sent or 0,
        "total_messages_received": received or 0,
        "unread_messages": unread or 0,
    }
