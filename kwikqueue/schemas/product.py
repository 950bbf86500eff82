"""Product schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from kwikqueue.domain.status import ProductStatus
from kwikqueue.schemas.common import CamelModel


class ProductCreate(CamelModel):
    """Create product request"""
    name: str
    details: Optional[str] = None
    price: int = Field(..., ge=0)
    category: Optional[str] = None
    status: ProductStatus = ProductStatus.ACTIVE
    image_url: Optional[str] = None


class ProductUpdate(CamelModel):
    """Update product request"""
    name: Optional[str] = None
    details: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    status: Optional[ProductStatus] = None
    image_url: Optional[str] = None


class ProductResponse(CamelModel):
    """Product response"""
    id: UUID
    company_id: int
    name: str
    details: Optional[str] = None
    price: int
    category: Optional[str] = None
    status: ProductStatus
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
