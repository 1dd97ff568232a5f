from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base

POLARITIES = ("left", "right")


class PreferenceTag(Base):
    """Справочник кодов. Заполняется только сидом, пользователи его не меняют."""

    __tablename__ = "preference_tags"
    __table_args__ = (UniqueConstraint("label", "polarity", name="uq_preference_tag_label_polarity"),)

    id = Column(BigInteger, primary_key=True, index=True)
    label = Column(String(64), nullable=False, index=True)
    polarity = Column(String(8), nullable=False)
    category = Column(String(64), nullable=False, index=True)
    meaning = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    cultural_context = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PreferenceTag {self.label}/{self.polarity}>"


class UserPreferenceTag(Base):
    __tablename__ = "user_preference_tags"
    __table_args__ = (CheckConstraint("intensity BETWEEN 1 AND 10", name="ck_user_tag_intensity"),)

    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(BigInteger, ForeignKey("preference_tags.id", ondelete="CASCADE"), primary_key=True)
    # полярность кода на момент назначения
    polarity = Column(String(8), nullable=False)
    intensity = Column(Integer, nullable=False, default=5)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User")
    tag = relationship("PreferenceTag", lazy="joined")

    def __repr__(self):
        return f"<UserPreferenceTag user={self.user_id} tag={self.tag_id} x{self.intensity}>"
