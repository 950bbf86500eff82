"""Company management API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
import structlog

from kwikqueue.api.auth import require_role, verify_company_access
from kwikqueue.api.deps import get_dispatcher, get_store
from kwikqueue.domain.errors import NotificationFailure
from kwikqueue.models.user import User, UserRole
from kwikqueue.notifications.dispatcher import NotificationDispatcher
from kwikqueue.notifications.notifier import TelegramNotifier
from kwikqueue.schemas.company import (
    CompanyCreate,
    CompanyRecord,
    CompanyResponse,
    CompanyUpdate,
    CustomerResponse,
    MarketingRequest,
    MarketingResponse,
)
from kwikqueue.services.marketing import broadcast
from kwikqueue.store.base import Store
from kwikqueue.store.filters import eq

router = APIRouter()
logger = structlog.get_logger()


@router.post("", response_model=CompanyResponse, status_code=201)
async def create_company(
    request: CompanyCreate,
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    store: Store = Depends(get_store),
):
    """Register a new establishment (super admin only)"""
    code = request.code.upper()
    if await store.get("companies", [eq("code", code)], limit=1):
        raise HTTPException(status_code=409, detail="Company code already in use")

    data = request.model_dump()
    data["code"] = code
    record = await store.insert("companies", data)

    logger.info("Company created", company_id=record["id"], code=code)
    return CompanyResponse.from_record(CompanyRecord.model_validate(record))


@router.get("", response_model=List[CompanyResponse])
async def list_companies(
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    store: Store = Depends(get_store),
):
    records = await store.get("companies", order_by="name")
    return [CompanyResponse.from_record(CompanyRecord.model_validate(r)) for r in records]


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: int,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    record = await store.get_by_id("companies", company_id)
    return CompanyResponse.from_record(CompanyRecord.model_validate(record))


@router.patch("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: int,
    request: CompanyUpdate,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    """Update settings such as order intake, marketing and Telegram alerts"""
    if not current_user.has_permission(UserRole.COMPANY_ADMIN):
        raise HTTPException(status_code=403, detail="Insufficient permissions")

    data = request.model_dump(exclude_unset=True)
    if "is_active" in data and current_user.role != UserRole.SUPER_ADMIN:
        raise HTTPException(status_code=403, detail="Only platform admins can (de)activate companies")

    record = await store.update("companies", company_id, data)
    logger.info("Company updated", company_id=company_id, fields=sorted(data))
    return CompanyResponse.from_record(CompanyRecord.model_validate(record))


@router.post("/{company_id}/telegram/check")
async def check_telegram(
    company_id: int,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    """Resolve the configured bot token to the bot's name"""
    company = CompanyRecord.model_validate(await store.get_by_id("companies", company_id))
    try:
        return await TelegramNotifier(company.telegram_bot_token or "").check_bot()
    except NotificationFailure as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.get("/{company_id}/customers", response_model=List[CustomerResponse])
async def list_customers(
    company_id: int,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    """Customer contact list built from queue joins"""
    return await store.get(
        "customers", [eq("company_id", company_id)], order_by="last_seen_at", descending=True
    )


@router.post("/{company_id}/marketing", response_model=MarketingResponse)
async def send_marketing(
    company_id: int,
    request: MarketingRequest,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """SMS broadcast to selected customers"""
    if not current_user.has_permission(UserRole.COMPANY_ADMIN):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return await broadcast(store, dispatcher, company_id, request.phones, request.message)
