from typing import Optional
from datetime import datetime

from pydantic import BaseModel, Field


class TagRead(BaseModel):
    id: int
    label: str = Field(..., description="Метка кода, например цвет")
    polarity: str = Field(..., description="Полярность: 'left' или 'right'")
    category: str
    meaning: str
    description: Optional[str] = None
    cultural_context: Optional[str] = None

    class Config:
        from_attributes = True
        validate_by_name = True


class TagCategoryRead(BaseModel):
    category: str
    count: int


class UserTagAssign(BaseModel):
    tag_id: int = Field(..., description="ID кода из справочника")
    intensity: int = Field(5, description="Интенсивность 1–10")


class UserTagIntensityUpdate(BaseModel):
    intensity: int = Field(..., description="Интенсивность 1–10")


class UserTagRead(BaseModel):
    tag: TagRead
    intensity: int
    polarity: str
    added_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        validate_by_name = True
