from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.sql import func

from .base import Base

REPORT_TYPES = ("harassment", "inappropriate_content", "fake_profile", "safety_concern", "other")
SYSTEM_REPORT_TYPE = "system"
REPORT_STATUSES = ("pending", "investigating", "resolved", "dismissed")
# reporter_id = 0 — жалоба, созданная автомодерацией
SYSTEM_REPORTER_ID = 0


class AbuseReport(Base):
    __tablename__ = "abuse_reports"

    id = Column(BigInteger, primary_key=True, index=True)
    reporter_id = Column(BigInteger, nullable=False, index=True)
    reported_user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    report_type = Column(String(32), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AbuseReport {self.reporter_id}→{self.reported_user_id} {self.report_type}/{self.status}>"
