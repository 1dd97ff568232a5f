from sqlalchemy import Column, DateTime, String, Text

from .base import Base


class KVEntry(Base):
    """Строка key-value хранилища с TTL (блокировки, флаги, счётчики)."""

    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)

    def __repr__(self):
        return f"<KVEntry {self.key} until={self.expires_at}>"
