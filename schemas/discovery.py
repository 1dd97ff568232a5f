from typing import List

from pydantic import BaseModel, Field

from .user import PartnerRead


class CandidateRead(BaseModel):
    user: PartnerRead
    compatibility_score: int = Field(..., description="Совместимость 0–100")
    shared_tag_ids: List[int] = Field([], description="Общие коды")
    matched_codes_count: int

    class Config:
        from_attributes = True
        validate_by_name = True
