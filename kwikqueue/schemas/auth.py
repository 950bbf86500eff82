"""Staff authentication schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from kwikqueue.models.user import UserRole


class Token(BaseModel):
    """Access/refresh pair issued at login and on refresh"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Access token lifetime in seconds


class RefreshRequest(BaseModel):
    refresh_token: str


class UserCreate(BaseModel):
    """New staff account; company admins can only create within their company"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str
    phone: Optional[str] = None
    role: UserRole = UserRole.STAFF
    company_id: Optional[int] = None


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str]
    phone: Optional[str]
    role: UserRole
    company_id: Optional[int]
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime]

    class Config:
        from_attributes = True
