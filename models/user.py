from sqlalchemy import Column, BigInteger, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from .base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(BigInteger, primary_key=True, index=True)
    username = Column(String(64), unique=True, nullable=False)
    display_name = Column(String(100), nullable=True)
    age = Column(Integer, nullable=True)
    pronouns = Column(String(32), nullable=True)
    bio = Column(Text, nullable=True)
    location_city = Column(String(64), nullable=True)
    location_state = Column(String(64), nullable=True)
    # public / community / private
    profile_visibility = Column(String(16), nullable=False, default="public")

    last_active = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User id={self.id} username={self.username}>"
