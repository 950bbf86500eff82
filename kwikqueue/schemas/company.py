"""Company schemas"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from kwikqueue.schemas.common import CamelModel


class CompanyRecord(CamelModel):
    """Company as persisted, including staff alert credentials"""
    id: int
    code: str
    name: str
    location: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    type: Optional[str] = None
    nif: Optional[str] = None
    email: Optional[str] = None
    logo_url: Optional[str] = None
    lat: float = 0.0
    lng: float = 0.0
    is_active: bool = True
    is_accepting_orders: bool = True
    marketing_enabled: bool = False
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CompanyResponse(CamelModel):
    """Company for staff views; credentials are never returned"""
    id: int
    code: str
    name: str
    location: Optional[str]
    city: Optional[str]
    province: Optional[str]
    type: Optional[str]
    nif: Optional[str]
    email: Optional[str]
    logo_url: Optional[str]
    lat: float
    lng: float
    is_active: bool
    is_accepting_orders: bool
    marketing_enabled: bool
    telegram_configured: bool = False

    @classmethod
    def from_record(cls, record: CompanyRecord) -> "CompanyResponse":
        return cls(
            **record.model_dump(exclude={"telegram_bot_token", "telegram_chat_id", "created_at", "updated_at"}),
            telegram_configured=bool(record.telegram_bot_token and record.telegram_chat_id),
        )


class CompanyPublic(CamelModel):
    """What a customer sees of a company"""
    id: int
    code: str
    name: str
    location: Optional[str] = None
    city: Optional[str] = None
    logo_url: Optional[str] = None
    is_accepting_orders: bool = True


class CompanyCreate(CamelModel):
    """Create company request"""
    code: str = Field(..., min_length=3, max_length=8, pattern=r"^[A-Za-z0-9]+$")
    name: str
    location: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    type: Optional[str] = None
    nif: Optional[str] = None
    email: Optional[str] = None
    logo_url: Optional[str] = None
    lat: float = 0.0
    lng: float = 0.0
    marketing_enabled: bool = False


class CompanyUpdate(CamelModel):
    """Update company request"""
    name: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    logo_url: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    is_active: Optional[bool] = None
    is_accepting_orders: Optional[bool] = None
    marketing_enabled: Optional[bool] = None
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None


class MarketingRequest(CamelModel):
    """SMS broadcast to selected customers"""
    phones: List[str] = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class MarketingResponse(CamelModel):
    sent: int
    failed: int


class CustomerResponse(CamelModel):
    phone: str
    name: Optional[str]
    order_count: int
    last_seen_at: Optional[datetime]
