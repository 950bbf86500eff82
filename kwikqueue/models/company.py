"""Company (establishment) model"""

from sqlalchemy import Column, String, Boolean, DateTime, Float, Integer, Text
from sqlalchemy.orm import relationship

from kwikqueue.database import Base, utcnow


class Company(Base):
    """Food-service establishment running a queue"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(8), unique=True, nullable=False)  # Printed on the counter / QR code
    name = Column(String(255), nullable=False)
    location = Column(Text)
    city = Column(String(100))
    province = Column(String(100))
    type = Column(String(50))
    nif = Column(String(50))
    email = Column(String(255))
    logo_url = Column(String(500))

    # Presence validation
    lat = Column(Float, nullable=False, default=0.0)
    lng = Column(Float, nullable=False, default=0.0)

    # Operational flags
    is_active = Column(Boolean, nullable=False, default=True)
    is_accepting_orders = Column(Boolean, nullable=False, default=True)
    marketing_enabled = Column(Boolean, nullable=False, default=False)

    # Staff alerts
    telegram_bot_token = Column(String(255))
    telegram_chat_id = Column(String(100))

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    products = relationship("Product", back_populates="company")
    orders = relationship("Order", back_populates="company")
    users = relationship("User", back_populates="company")
