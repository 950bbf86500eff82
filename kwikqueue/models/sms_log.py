"""SMS delivery log model"""

import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Uuid

from kwikqueue.database import Base, utcnow


class SmsLog(Base):
    """One row per successfully delivered SMS"""
    __tablename__ = "sms_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    recipient = Column(String(30), nullable=False)
    message = Column(Text, nullable=False)
    cost = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, index=True)
