"""Ошибки движка матчинга.

Сервисы не знают про HTTP: они бросают наследников EngineError, а main.py
превращает их в JSON-ответ с подходящим статусом.
"""
import functools
import logging

from sqlalchemy.exc import SQLAlchemyError
from starlette import status

logger = logging.getLogger(__name__)


class EngineError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, **extra):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_dict(self) -> dict:
        return {"detail": self.detail, **self.extra}


class InvalidInput(EngineError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(EngineError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(EngineError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(EngineError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(EngineError):
    status_code = status.HTTP_409_CONFLICT


class RateLimited(EngineError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class StoreError(EngineError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def store_errors(func):
    """Превращает сбои хранилища в StoreError. Повторов нет."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.exception("Store call %s failed: %s", func.__qualname__, exc)
            raise StoreError("Store operation failed") from exc

    return wrapper


def require_identity(user_id) -> int:
    """Операции с идентичностью требуют аутентифицированного пользователя."""
    if user_id is None:
        raise Unauthorized("Authentication required")
    return user_id
