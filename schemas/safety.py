from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field

from .user import BlockedUserRead


class ReportCreate(BaseModel):
    reported_user_id: Optional[int] = Field(None, description="На кого жалоба")
    report_type: Optional[str] = Field(
        None,
        description="harassment / inappropriate_content / fake_profile / safety_concern / other",
    )
    description: Optional[str] = Field(None, description="Описание ситуации")


class ReportRead(BaseModel):
    id: int
    reporter_id: int
    reported_user_id: int
    report_type: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
        validate_by_name = True


class BlockRequest(BaseModel):
    user_id: Optional[int] = Field(None, description="Кого блокируем или разблокируем")


class SuccessResponse(BaseModel):
    success: bool


class BlockStatusRead(BaseModel):
    is_blocked: bool


class BlockedListRead(BaseModel):
    blocked_users: List[BlockedUserRead]


class SafetyStatsRead(BaseModel):
    total_reports: int
    resolved_reports: int
    pending_reports: int
    recent_reports: int
