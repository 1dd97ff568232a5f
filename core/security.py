# core/security.py
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.errors import Unauthorized
from models.user import User

# Токены выдаёт внешний auth-сервис, здесь они только проверяются
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def decode_user_id(token: Optional[str]) -> int:
    """Достаёт user_id из JWT. Бросает Unauthorized, если токена нет или он невалиден."""
    if not token:
        raise Unauthorized("Authentication required")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise Unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if user_id is None:
        raise Unauthorized("Could not validate credentials")
    try:
        return int(user_id)
    except (TypeError, ValueError):
        raise Unauthorized("Could not validate credentials")


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    user_id = decode_user_id(token)
    user = await db.get(User, user_id)
    if not user:
        raise Unauthorized("User not found")
    return user
