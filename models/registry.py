# Импортирует все модели, чтобы Base.metadata знал о каждой таблице
from .abuse_report import AbuseReport
from .base import Base
from .kv_entry import KVEntry
from .match import Match
from .message import Message
from .preference_tag import PreferenceTag, UserPreferenceTag
from .user import User

__all__ = [
    "AbuseReport",
    "Base",
    "KVEntry",
    "Match",
    "Message",
    "PreferenceTag",
    "User",
    "UserPreferenceTag",
]
