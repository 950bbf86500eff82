"""Public customer-facing queue endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
import structlog

from kwikqueue.api.deps import get_order_service
from kwikqueue.domain.errors import DuplicateActiveOrder
from kwikqueue.schemas.company import CompanyPublic
from kwikqueue.schemas.order import (
    CartConfirmRequest,
    CustomerCancelRequest,
    JoinQueueRequest,
    JoinQueueResponse,
    OrderView,
    TrackingResponse,
)
from kwikqueue.schemas.product import ProductResponse
from kwikqueue.services.orders import OrderService
from kwikqueue.store.filters import eq

router = APIRouter()
logger = structlog.get_logger()


@router.get("/companies/{code}", response_model=CompanyPublic)
async def get_company_by_code(
    code: str,
    service: OrderService = Depends(get_order_service),
):
    company = await service.resolve_company(code)
    return CompanyPublic.model_validate(company.model_dump())


@router.get("/companies/{code}/menu", response_model=List[ProductResponse])
async def get_menu(
    code: str,
    service: OrderService = Depends(get_order_service),
):
    """Products of a store, as shown while building the cart"""
    company = await service.resolve_company(code)
    return await service.store.get(
        "products", [eq("company_id", company.id)], order_by="category"
    )


@router.post("/join", response_model=JoinQueueResponse, status_code=201)
async def join_queue(
    request: JoinQueueRequest,
    response: Response,
    service: OrderService = Depends(get_order_service),
):
    """
    Join a store's queue.

    A customer who already has an open order at the store is sent back to
    it (``redirected``) instead of getting a second ticket.
    """
    try:
        order = await service.join_queue(request)
    except DuplicateActiveOrder as e:
        response.status_code = 200
        logger.info("Customer redirected to open order", order_id=str(e.existing.id))
        return JoinQueueResponse(order=e.existing, redirected=True)
    return JoinQueueResponse(order=order)


@router.get("/orders/{order_id}", response_model=TrackingResponse)
async def track_order(
    order_id: UUID,
    service: OrderService = Depends(get_order_service),
):
    return await service.tracking(order_id)


@router.post("/orders/{order_id}/cart", response_model=OrderView)
async def confirm_cart(
    order_id: UUID,
    request: CartConfirmRequest,
    service: OrderService = Depends(get_order_service),
):
    """Submit the cart; prices are frozen at this point"""
    return await service.confirm_cart(order_id, request.items)


@router.post("/orders/{order_id}/cancel", response_model=OrderView)
async def cancel_order(
    order_id: UUID,
    request: CustomerCancelRequest,
    service: OrderService = Depends(get_order_service),
):
    """Customer cancellation, allowed until preparation starts"""
    return await service.cancel_by_customer(order_id, request.customer_phone)
