from typing import Optional
from datetime import datetime

from pydantic import BaseModel, Field


class PartnerRead(BaseModel):
    user_id: int = Field(..., description="PK в базе данных")
    username: str = Field(..., description="Логин пользователя")
    display_name: Optional[str] = Field(None, description="Отображаемое имя")
    age: Optional[int] = Field(None, description="Возраст")
    pronouns: Optional[str] = Field(None, description="Местоимения")
    bio: Optional[str] = Field(None, description="О себе")
    location_city: Optional[str] = Field(None, description="Город")
    location_state: Optional[str] = Field(None, description="Регион")
    last_active: Optional[datetime] = Field(None, description="Последняя активность")

    class Config:
        from_attributes = True
        validate_by_name = True


class BlockedUserRead(BaseModel):
    user_id: int
    username: str
    display_name: Optional[str] = None

    class Config:
        from_attributes = True
        validate_by_name = True
