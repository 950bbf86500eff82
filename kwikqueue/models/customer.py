"""Customer registry model"""

import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid, UniqueConstraint

from kwikqueue.database import Base, utcnow


class Customer(Base):
    """Phone numbers seen by a company; doubles as the marketing contact list"""
    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("company_id", "phone"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    name = Column(String(255))
    order_count = Column(Integer, nullable=False, default=0)
    last_seen_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
