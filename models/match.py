from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base

MATCH_STATUSES = ("pending", "accepted", "declined", "blocked")


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        # одна запись на неупорядоченную пару
        UniqueConstraint("user_low_id", "user_high_id", name="uq_match_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ck_match_pair_order"),
    )

    id = Column(BigInteger, primary_key=True, index=True)
    user_low_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_high_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    compatibility_score = Column(Float, nullable=False, default=0.0)
    shared_tag_ids = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default="pending", index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    user_low = relationship("User", foreign_keys=[user_low_id])
    user_high = relationship("User", foreign_keys=[user_high_id])

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user_low_id, self.user_high_id)

    def partner_of(self, user_id: int) -> int:
        return self.user_high_id if self.user_low_id == user_id else self.user_low_id

    def __repr__(self):
        return f"<Match {self.user_low_id}↔{self.user_high_id} {self.status}>"
