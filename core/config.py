from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./pulse.db"
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ADMIN_PASSWORD: Optional[str] = None
    DEBUG: bool = False

    # Автомодерация по жалобам
    REPORT_WINDOW_DAYS: int = 7
    REPORT_FLAG_THRESHOLD: int = 3
    REPORT_RESTRICT_THRESHOLD: int = 5
    REPORT_COOLDOWN_SECONDS: int = 60 * 60 * 24
    FLAG_TTL_SECONDS: int = 60 * 60 * 24 * 3
    RESTRICT_TTL_SECONDS: int = 60 * 60 * 24 * 7
    BLOCK_TTL_SECONDS: int = 60 * 60 * 24 * 365

    # Сообщения
    MESSAGE_RATE_LIMIT: int = 10
    MESSAGE_RATE_WINDOW_SECONDS: int = 60
    MESSAGE_MAX_LENGTH: int = 1000
    MESSAGE_DELETE_WINDOW_SECONDS: int = 5 * 60

    DISCOVERY_SCORE_FLOOR: float = 0.1

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


# Создаём глобальный объект, который будем импортировать везде
settings = Settings()
