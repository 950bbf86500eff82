"""Order model"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, Integer, Uuid
from sqlalchemy.orm import relationship

from kwikqueue.database import Base, utcnow
from kwikqueue.domain.status import OrderStatus, OrderType


class Order(Base):
    """Queue ticket and the order placed on it"""
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # Customer-facing identity
    ticket_code = Column(String(4), nullable=False)
    ticket_number = Column(Integer)

    # Customer information (the phone number is the customer identity)
    customer_phone = Column(String(20), nullable=False, index=True)
    customer_name = Column(String(255))

    # Lifecycle
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    cancelled_by = Column(String(20))  # customer, admin

    # Order contents
    # [{"product_id": "...", "name": "...", "quantity": 1, "unit_price": 500, "observation": null}, ...]
    items = Column(JSON, nullable=False, default=list)
    total = Column(Integer)  # Frozen at cart confirmation

    # Queue bookkeeping (display cache only)
    queue_position = Column(Integer)
    estimated_minutes = Column(Integer)

    # Preparation stopwatch
    timer_accumulated_seconds = Column(Integer, nullable=False, default=0)
    timer_last_started_at = Column(DateTime)

    # Fulfillment
    order_type = Column(String(20), nullable=False, default=OrderType.EAT_IN.value)
    delivery_address = Column(Text)
    delivery_coords = Column(JSON)  # {"lat": ..., "lng": ...}
    payment_method = Column(String(20))  # CASH, TPA, TRANSFER (informational)

    # Incremented on every write; conditional updates compare against it
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    company = relationship("Company", back_populates="orders")
