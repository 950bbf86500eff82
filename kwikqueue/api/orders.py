"""Staff order board API endpoints"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
import structlog

from kwikqueue.api.auth import verify_company_access
from kwikqueue.api.deps import get_order_service
from kwikqueue.database import utcnow
from kwikqueue.domain.errors import RecordNotFound
from kwikqueue.domain.status import Actor
from kwikqueue.models.user import User
from kwikqueue.schemas.order import OrderHistoryReport, OrderView, StatusChangeRequest
from kwikqueue.services.orders import OrderService
from kwikqueue.services.reports import export_csv

router = APIRouter()
logger = structlog.get_logger()


async def _company_order(service: OrderService, company_id: int, order_id: UUID) -> OrderView:
    view = await service.get_view(order_id)
    if view.company_id != company_id:
        raise RecordNotFound("orders", order_id)
    return view


@router.get("", response_model=List[OrderView])
async def list_active_orders(
    company_id: int,
    search: Optional[str] = Query(None, max_length=100),
    current_user: User = Depends(verify_company_access),
    service: OrderService = Depends(get_order_service),
):
    """Open orders in queue order, with optional free-text search"""
    return await service.active_board(company_id, search)


@router.get("/history", response_model=OrderHistoryReport)
async def order_history(
    company_id: int,
    status: Optional[str] = None,
    phone: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    current_user: User = Depends(verify_company_access),
    service: OrderService = Depends(get_order_service),
):
    return await service.history(company_id, status, phone, date_from, date_to)


@router.get("/export.csv")
async def export_orders(
    company_id: int,
    status: Optional[str] = None,
    phone: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    current_user: User = Depends(verify_company_access),
    service: OrderService = Depends(get_order_service),
):
    """History rows as CSV"""
    report = await service.history(company_id, status, phone, date_from, date_to)
    filename = f"relatorio_{company_id}_{utcnow().date().isoformat()}.csv"
    return Response(
        content=export_csv(report.items),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{order_id}", response_model=OrderView)
async def get_order(
    company_id: int,
    order_id: UUID,
    current_user: User = Depends(verify_company_access),
    service: OrderService = Depends(get_order_service),
):
    return await _company_order(service, company_id, order_id)


@router.post("/{order_id}/status", response_model=OrderView)
async def change_order_status(
    company_id: int,
    order_id: UUID,
    request: StatusChangeRequest,
    current_user: User = Depends(verify_company_access),
    service: OrderService = Depends(get_order_service),
):
    """
    Advance or cancel an order.

    Send ``expectedVersion`` to make the change conditional on the order
    not having been modified since it was displayed.
    """
    await _company_order(service, company_id, order_id)
    view = await service.transition(order_id, request.status, Actor.ADMIN, request.expected_version)
    logger.info("Status set by staff", order_id=str(order_id), status=view.status.value, user_id=str(current_user.id))
    return view
