"""Pydantic schemas for request/response validation"""

from kwikqueue.schemas.auth import (
    Token,
    RefreshRequest,
    UserCreate,
    UserResponse,
)
from kwikqueue.schemas.common import CamelModel
from kwikqueue.schemas.company import (
    CompanyRecord,
    CompanyResponse,
    CompanyPublic,
    CompanyCreate,
    CompanyUpdate,
    CustomerResponse,
    MarketingRequest,
    MarketingResponse,
)
from kwikqueue.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from kwikqueue.schemas.order import (
    OrderRecord,
    OrderView,
    JoinQueueRequest,
    JoinQueueResponse,
    CartLineRequest,
    CartConfirmRequest,
    StatusChangeRequest,
    CustomerCancelRequest,
    OrderHistoryReport,
    TrackingResponse,
)

__all__ = [
    "Token",
    "RefreshRequest",
    "UserCreate",
    "UserResponse",
    "CamelModel",
    "CompanyRecord",
    "CompanyResponse",
    "CompanyPublic",
    "CompanyCreate",
    "CompanyUpdate",
    "CustomerResponse",
    "MarketingRequest",
    "MarketingResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "OrderRecord",
    "OrderView",
    "JoinQueueRequest",
    "JoinQueueResponse",
    "CartLineRequest",
    "CartConfirmRequest",
    "StatusChangeRequest",
    "CustomerCancelRequest",
    "OrderHistoryReport",
    "TrackingResponse",
]
