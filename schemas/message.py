from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field

from .user import PartnerRead


class MessageCreate(BaseModel):
    content: str = Field(..., description="Текст сообщения, до 1000 символов")

    class Config:
        # тип сообщения выбирает сервер
        extra = "forbid"


class MessageRead(BaseModel):
    id: int
    match_id: int
    sender_id: int
    content: str
    message_type: str
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
        validate_by_name = True


class MessagePageRead(BaseModel):
    messages: List[MessageRead]
    count: int = Field(..., description="Сколько сообщений на этой странице")
    has_more: bool


class LastMessageRead(BaseModel):
    content: Optional[str] = None
    sent_at: Optional[datetime] = None
    sent_by_me: bool = False


class ConversationRead(BaseModel):
    match_id: int
    partner: PartnerRead
    last_message: LastMessageRead
    unread_count: int
    matched_at: Optional[datetime] = None
    compatibility_score: int


class MarkReadResponse(BaseModel):
    marked_as_read: int


class MessageStatsRead(BaseModel):
    active_conversations: int
    total_messages_sent: int
    total_messages_received: int
    unread_messages: int
