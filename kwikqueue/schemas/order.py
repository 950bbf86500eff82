"""Order schemas"""

import re
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from kwikqueue.domain.presence import Coordinates
from kwikqueue.domain.state_machine import LineItem
from kwikqueue.domain.status import Actor, OrderStatus, OrderType, parse_status
from kwikqueue.schemas.common import CamelModel
from kwikqueue.schemas.company import CompanyPublic

MIN_PHONE_DIGITS = 9


def _check_phone(value: str) -> str:
    value = value.strip()
    if len(re.sub(r"\D", "", value)) < MIN_PHONE_DIGITS:
        raise ValueError("Phone number must have at least 9 digits")
    return value


class OrderRecord(CamelModel):
    """Order as persisted"""
    id: UUID
    company_id: int
    ticket_code: str
    ticket_number: Optional[int] = None
    customer_phone: str
    customer_name: Optional[str] = None
    status: OrderStatus
    cancelled_by: Optional[Actor] = None
    items: List[LineItem] = []
    total: Optional[int] = None
    queue_position: Optional[int] = None
    estimated_minutes: Optional[int] = None
    timer_accumulated_seconds: int = 0
    timer_last_started_at: Optional[datetime] = None
    order_type: OrderType = OrderType.EAT_IN
    delivery_address: Optional[str] = None
    delivery_coords: Optional[Coordinates] = None
    payment_method: Optional[str] = None
    version: int = 1
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return parse_status(value)

    @field_validator("items", mode="before")
    @classmethod
    def _default_items(cls, value):
        return value or []

    @field_validator("timer_accumulated_seconds", mode="before")
    @classmethod
    def _default_seconds(cls, value):
        return value or 0


class OrderView(OrderRecord):
    """Order with the derived fields clients display"""
    elapsed_seconds: int = 0
    status_label: str = ""


class JoinQueueRequest(CamelModel):
    """Customer joins a company queue"""
    code: Optional[str] = None
    scanned_payload: Optional[str] = None
    customer_phone: str = Field(..., min_length=9, max_length=20)
    customer_name: Optional[str] = None
    order_type: OrderType = OrderType.EAT_IN
    delivery_address: Optional[str] = None
    delivery_coords: Optional[Coordinates] = None
    position: Optional[Coordinates] = None
    geolocation_error: Optional[Literal["permission_denied", "unavailable"]] = None
    skip_cart: bool = False  # Create straight in RECEIVED without a cart step

    @field_validator("customer_phone")
    @classmethod
    def _phone_digits(cls, value: str) -> str:
        return _check_phone(value)

    @model_validator(mode="after")
    def _delivery_destination(self):
        if self.order_type == OrderType.DELIVERY:
            if not (self.delivery_address or "").strip() and self.delivery_coords is None:
                raise ValueError("Delivery orders need an address or coordinates")
        return self


class JoinQueueResponse(CamelModel):
    order: OrderView
    redirected: bool = False


class CartLineRequest(CamelModel):
    product_id: UUID
    quantity: int = Field(1, ge=1)
    observation: Optional[str] = None


class CartConfirmRequest(CamelModel):
    items: List[CartLineRequest]


class StatusChangeRequest(CamelModel):
    """Staff status change"""
    status: str
    expected_version: Optional[int] = None


class CustomerCancelRequest(CamelModel):
    customer_phone: str

    @field_validator("customer_phone")
    @classmethod
    def _phone_digits(cls, value: str) -> str:
        return _check_phone(value)


class OrderHistoryReport(CamelModel):
    """Closed-order history with aggregates"""
    items: List[OrderView]
    total: int
    revenue: int
    sms_count: int
    sms_cost: int
    net_revenue: int
    average_preparation_minutes: int


class TrackingResponse(CamelModel):
    """Customer tracking screen payload"""
    order: OrderView
    company: CompanyPublic
    orders_ahead: int = 0
    echo: Optional[str] = None
