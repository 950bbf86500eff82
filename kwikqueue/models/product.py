"""Product model"""

import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from kwikqueue.database import Base, utcnow
from kwikqueue.domain.status import ProductStatus


class Product(Base):
    """Menu product; its price is copied into orders at confirmation"""
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    details = Column(Text)
    price = Column(Integer, nullable=False)  # Smallest currency unit
    category = Column(String(100))
    status = Column(String(20), nullable=False, default=ProductStatus.ACTIVE.value)
    image_url = Column(String(500))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    company = relationship("Company", back_populates="products")
