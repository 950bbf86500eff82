"""WebSocket change streams for staff boards and customer tracking"""

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from kwikqueue.api.auth import ACCESS, decode_token
from kwikqueue.api.deps import get_order_service
from kwikqueue.config import settings
from kwikqueue.database import get_db
from kwikqueue.domain.errors import KwikQueueError, RealtimeTimeout
from kwikqueue.domain.status import ACTIVE_STATUSES
from kwikqueue.models.user import User, UserRole
from kwikqueue.realtime.reconciler import Echo
from kwikqueue.realtime.session import RealtimeSession
from kwikqueue.schemas.order import OrderRecord
from kwikqueue.services.orders import OrderService
from kwikqueue.store.feed import ChangeEvent

router = APIRouter()
logger = structlog.get_logger()

POLICY_VIOLATION = 1008
TRY_AGAIN_LATER = 1013


def _camel(record: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {to_camel(key): value for key, value in record.items()}


def event_message(event: ChangeEvent, echo: Optional[Echo] = None) -> Dict[str, Any]:
    """Wire shape of a change event; records use the camelCase API names"""
    message = {
        "type": "change",
        "table": event.table,
        "eventType": event.event_type,
        "old": _camel(event.old),
        "new": _camel(event.new),
    }
    if echo is not None:
        message["echo"] = {"orderId": echo.order_id, "status": echo.status.value, "message": echo.message}
    return jsonable_encoder(message)


async def _staff_allowed(token: str, company_id: int, db: AsyncSession) -> bool:
    user_id = decode_token(token, ACCESS)
    if user_id is None:
        return False
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return False
    return user.role == UserRole.SUPER_ADMIN or user.company_id == company_id


async def _stream(websocket: WebSocket, session: RealtimeSession, on_event) -> None:
    """Forward events until the client goes away; idle periods send a ping"""
    while True:
        try:
            event, echo = await session.next_event(timeout=settings.realtime_timeout_seconds)
        except RealtimeTimeout:
            await websocket.send_json({"type": "ping"})
            continue
        message = on_event(event, echo)
        if message is not None:
            await websocket.send_json(message)


@router.websocket("/companies/{company_id}")
async def company_feed(
    websocket: WebSocket,
    company_id: int,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
):
    """Order, product and company changes for one company's staff"""
    if not await _staff_allowed(token, company_id, db):
        await websocket.close(code=POLICY_VIOLATION)
        return

    await websocket.accept()
    try:
        async with RealtimeSession(service.store, company_id) as session:
            board = await service.active_board(company_id)
            await websocket.send_json(jsonable_encoder({
                "type": "snapshot",
                "orders": [view.model_dump(by_alias=True) for view in board],
            }))
            await _stream(websocket, session, event_message)
    except WebSocketDisconnect:
        logger.info("Board client disconnected", company_id=company_id)
    except KwikQueueError as e:
        logger.warning("Board stream closed", company_id=company_id, error=e.message)
        await websocket.close(code=TRY_AGAIN_LATER)


@router.websocket("/orders/{order_id}")
async def order_feed(
    websocket: WebSocket,
    order_id: UUID,
    service: OrderService = Depends(get_order_service),
):
    """Live tracking of one order: position, status and status-change echoes"""
    await websocket.accept()
    key = str(order_id)
    try:
        order = await service.get_order(order_id)
        async with RealtimeSession(service.store, order.company_id) as session:
            reconciler = session.reconciler
            # The reconciler drops finished orders, so the tracked one is kept here
            tracked = {"order": order}

            def tracking_message(event: ChangeEvent, echo: Optional[Echo]) -> Optional[Dict[str, Any]]:
                if event.table != "orders":
                    return None
                record = event.record or {}
                if str(record.get("id")) == key:
                    if event.event_type == "DELETE":
                        return None
                    incoming = OrderRecord.model_validate(record)
                    if incoming.version < tracked["order"].version:
                        return None
                    tracked["order"] = incoming
                elif tracked["order"].status not in ACTIVE_STATUSES:
                    return None
                view = service.build_view(
                    tracked["order"], reconciler.position_of(key), service.clock()
                )
                message = {"type": "tracking", "order": view.model_dump(by_alias=True)}
                if echo is not None and echo.order_id == key:
                    message["echo"] = echo.message
                return jsonable_encoder(message)

            await websocket.send_json(jsonable_encoder({
                "type": "tracking",
                "order": (await service.view(order)).model_dump(by_alias=True),
            }))
            await _stream(websocket, session, tracking_message)
    except WebSocketDisconnect:
        logger.info("Tracking client disconnected", order_id=key)
    except KwikQueueError as e:
        logger.warning("Tracking stream closed", order_id=key, error=e.message)
        await websocket.close(code=TRY_AGAIN_LATER)
