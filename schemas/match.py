from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field

from .user import PartnerRead


class MatchCreate(BaseModel):
    target_user_id: int = Field(..., description="Кому предлагаем матч")


class MatchRead(BaseModel):
    id: int
    status: str
    compatibility_score: int = Field(..., description="Совместимость 0–100")
    shared_tag_ids: List[int] = []
    matched_codes_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MatchListItem(MatchRead):
    partner: PartnerRead
    unread_count: int = 0
    last_message_at: Optional[datetime] = None


class MatchStatsRead(BaseModel):
    total_matches: int
    pending_matches: int
    accepted_matches: int
    declined_matches: int
    blocked_matches: int
    avg_compatibility: float
    avg_compatibility_percentage: int
