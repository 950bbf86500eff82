"""
Order lifecycle service.

Reads orders through the store, runs the state machine against them, writes
each resulting patch as one conditional row update and hands the emitted side
effects to the notification dispatcher.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from kwikqueue.config import settings
from kwikqueue.database import utcnow
from kwikqueue.domain import state_machine, tickets, timer
from kwikqueue.domain.errors import (
    CompanyUnavailable,
    ConcurrentUpdate,
    DuplicateActiveOrder,
    InvalidCart,
    KwikQueueError,
    NoMatch,
    RecordNotFound,
)
from kwikqueue.domain.presence import ClientReportedPosition, bypasses_presence, locate, verify_presence
from kwikqueue.domain.queue import compute_position, estimate_minutes, positions_by_id
from kwikqueue.domain.scanner import decode_company_code
from kwikqueue.domain.state_machine import LineItem, SideEffect
from kwikqueue.domain.status import (
    ACTIVE_STATUSES,
    OPEN_STATUSES,
    Actor,
    OrderStatus,
    ProductStatus,
    parse_status,
)
from kwikqueue.notifications.dispatcher import NotificationDispatcher, get_dispatcher
from kwikqueue.notifications.notifier import mask_phone, normalize_phone
from kwikqueue.notifications.templates import status_label, tracking_echo
from kwikqueue.schemas.company import CompanyPublic, CompanyRecord
from kwikqueue.schemas.order import (
    CartLineRequest,
    JoinQueueRequest,
    OrderHistoryReport,
    OrderRecord,
    OrderView,
    TrackingResponse,
)
from kwikqueue.services.reports import build_report
from kwikqueue.store.base import Store
from kwikqueue.store.filters import eq, gte, in_, lt, Filter

logger = structlog.get_logger()


def day_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Start and end of the UTC day containing `now`"""
    start = datetime.combine(now.date(), time.min)
    return start, start + timedelta(days=1)


def matches_search(order: OrderView, term: str) -> bool:
    """Free-text match over ticket, phone, name, status and line items"""
    term = term.strip().lower()
    if not term:
        return True

    haystack = [
        order.ticket_code,
        order.customer_phone,
        order.customer_name or "",
        order.status.value,
        order.status_label,
    ]
    for item in order.items:
        haystack.append(item.name)
        haystack.append(item.observation or "")
    return any(term in value.lower() for value in haystack)


class OrderService:
    """Customer and staff operations on orders"""

    def __init__(
        self,
        store: Store,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self._dispatcher = dispatcher
        self.clock = clock

    @property
    def dispatcher(self) -> NotificationDispatcher:
        if self._dispatcher is None:
            self._dispatcher = get_dispatcher()
        return self._dispatcher

    # Lookups

    async def get_order(self, order_id: Any) -> OrderRecord:
        return OrderRecord.model_validate(await self.store.get_by_id("orders", order_id))

    async def get_company(self, company_id: Any) -> CompanyRecord:
        return CompanyRecord.model_validate(await self.store.get_by_id("companies", company_id))

    async def resolve_company(
        self,
        code: Optional[str] = None,
        scanned_payload: Optional[str] = None,
    ) -> CompanyRecord:
        """Company for a typed code or a scanned QR payload"""
        if scanned_payload:
            code = decode_company_code(scanned_payload)
        if not code or not code.strip():
            raise NoMatch()

        code = code.strip().upper()
        rows = await self.store.get("companies", [eq("code", code)], limit=1)
        if not rows:
            raise RecordNotFound("companies", code)
        return CompanyRecord.model_validate(rows[0])

    # Views

    def build_view(self, order: OrderRecord, position: Optional[int], now: datetime) -> OrderView:
        data = order.model_dump()
        data.update(
            queue_position=position,
            elapsed_seconds=timer.elapsed_now(order, now),
            status_label=status_label(order.status, order.cancelled_by, settings.default_locale),
        )
        return OrderView.model_validate(data)

    async def _active_orders(self, company_id: int) -> List[OrderRecord]:
        records = await self.store.get(
            "orders",
            [eq("company_id", company_id), in_("status", list(ACTIVE_STATUSES))],
            order_by="created_at",
        )
        return [OrderRecord.model_validate(r) for r in records]

    async def view(self, order: OrderRecord) -> OrderView:
        position = None
        if order.status in ACTIVE_STATUSES:
            position = compute_position(order, await self._active_orders(order.company_id))
        return self.build_view(order, position, self.clock())

    async def get_view(self, order_id: Any) -> OrderView:
        return await self.view(await self.get_order(order_id))

    async def tracking(self, order_id: Any) -> TrackingResponse:
        """Everything the customer's tracking screen shows"""
        view = await self.get_view(order_id)
        company = await self.get_company(view.company_id)
        return TrackingResponse(
            order=view,
            company=CompanyPublic.model_validate(company.model_dump()),
            orders_ahead=(view.queue_position - 1) if view.queue_position else 0,
            echo=tracking_echo(view.status, settings.default_locale),
        )

    async def active_board(self, company_id: int, search: Optional[str] = None) -> List[OrderView]:
        """Open orders of a company in FIFO order, optionally filtered"""
        records = await self.store.get(
            "orders",
            [eq("company_id", company_id), in_("status", list(OPEN_STATUSES))],
            order_by="created_at",
        )
        orders = [OrderRecord.model_validate(r) for r in records]
        positions = positions_by_id(orders)
        now = self.clock()

        views = [self.build_view(o, positions.get(str(o.id)), now) for o in orders]
        if search:
            views = [v for v in views if matches_search(v, search)]
        return views

    # Customer flow

    async def join_queue(self, request: JoinQueueRequest) -> OrderView:
        """
        Create an order for a customer at a store.

        Raises DuplicateActiveOrder (carrying the existing order view) when
        the phone already holds an open order for the company.
        """
        company = await self.resolve_company(request.code, request.scanned_payload)
        if not company.is_active or not company.is_accepting_orders:
            raise CompanyUnavailable()

        if not bypasses_presence(company.code, settings.presence_bypass_prefix):
            adapter = ClientReportedPosition(request.position, request.geolocation_error)
            position = await locate(adapter, settings.geolocation_timeout_seconds)
            verify_presence(company, position, settings.store_radius_meters)

        phone = normalize_phone(request.customer_phone)
        existing = await self.store.get(
            "orders",
            [
                eq("company_id", company.id),
                eq("customer_phone", phone),
                in_("status", list(OPEN_STATUSES)),
            ],
            order_by="created_at",
            descending=True,
            limit=1,
        )
        if existing:
            raise DuplicateActiveOrder(await self.view(OrderRecord.model_validate(existing[0])))

        now = self.clock()
        start, end = day_bounds(now)
        today = await self.store.get(
            "orders",
            [eq("company_id", company.id), gte("created_at", start), lt("created_at", end)],
        )
        if settings.ticket_code_strategy == "unique_daily":
            ticket_code = tickets.allocate_unique(o["ticket_code"] for o in today)
        else:
            ticket_code = tickets.allocate()

        ahead = len(await self._active_orders(company.id))
        direct = request.skip_cart
        record = await self.store.insert("orders", {
            "company_id": company.id,
            "ticket_code": ticket_code,
            "ticket_number": tickets.next_ticket_number(o.get("ticket_number") for o in today),
            "customer_phone": phone,
            "customer_name": request.customer_name,
            "status": OrderStatus.RECEIVED if direct else OrderStatus.PENDING,
            "items": [],
            "total": 0 if direct else None,
            "queue_position": ahead + 1 if direct else None,
            "estimated_minutes": estimate_minutes(
                ahead, settings.default_estimated_minutes, settings.minutes_per_order_ahead
            ),
            "order_type": request.order_type,
            "delivery_address": request.delivery_address,
            "delivery_coords": request.delivery_coords.model_dump() if request.delivery_coords else None,
            "created_at": now,
            "updated_at": now,
        })
        order = OrderRecord.model_validate(record)

        logger.info(
            "Customer joined queue",
            order_id=str(order.id),
            company_id=company.id,
            ticket_code=order.ticket_code,
            phone=mask_phone(phone),
        )

        await self._register_customer(company.id, phone, request.customer_name, now)
        if direct:
            await self.notify([state_machine.new_order_alert(order)])
        return await self.view(order)

    async def _register_customer(self, company_id: int, phone: str, name: Optional[str], now: datetime) -> None:
        try:
            rows = await self.store.get(
                "customers", [eq("company_id", company_id), eq("phone", phone)], limit=1
            )
            if rows:
                row = rows[0]
                await self.store.update("customers", row["id"], {
                    "name": name or row.get("name"),
                    "order_count": (row.get("order_count") or 0) + 1,
                    "last_seen_at": now,
                })
            else:
                await self.store.insert("customers", {
                    "company_id": company_id,
                    "phone": phone,
                    "name": name,
                    "order_count": 1,
                    "last_seen_at": now,
                })
        except KwikQueueError as e:
            # The order already exists; a stale contact list is tolerable
            logger.warning("Customer registry update failed", company_id=company_id, error=str(e))

    async def confirm_cart(self, order_id: Any, lines: Sequence[CartLineRequest]) -> OrderView:
        """Snapshot product prices into the order and submit it to the kitchen"""
        order = await self.get_order(order_id)

        products: Dict[str, Dict[str, Any]] = {}
        if lines:
            rows = await self.store.get("products", [in_("id", [str(l.product_id) for l in lines])])
            products = {str(p["id"]): p for p in rows}

        items = []
        for line in lines:
            product = products.get(str(line.product_id))
            if product is None or product["company_id"] != order.company_id:
                raise InvalidCart(f"Product {line.product_id} is not available at this store")
            if ProductStatus(product["status"]) == ProductStatus.OUT_OF_STOCK:
                raise InvalidCart(f"{product['name']} is out of stock")
            items.append(LineItem(
                product_id=str(product["id"]),
                name=product["name"],
                quantity=line.quantity,
                unit_price=product["price"],
                observation=line.observation,
            ))

        patch = state_machine.confirm_cart(order, items)
        updated = await self._write(order, patch)
        logger.info("Cart confirmed", order_id=str(updated.id), items=len(items), total=updated.total)

        await self.notify([state_machine.new_order_alert(updated)])
        return await self.view(updated)

    async def cancel_by_customer(self, order_id: Any, customer_phone: str) -> OrderView:
        order = await self.get_order(order_id)
        if normalize_phone(customer_phone) != order.customer_phone:
            # Do not reveal that the order exists to someone else
            raise RecordNotFound("orders", order_id)
        return await self._apply(order, OrderStatus.CANCELLED, Actor.CUSTOMER)

    # Staff flow

    async def transition(
        self,
        order_id: Any,
        target: Any,
        actor: Actor = Actor.ADMIN,
        expected_version: Optional[int] = None,
    ) -> OrderView:
        """Move an order to `target`; `expected_version` pins the row version seen by the caller"""
        target = parse_status(target)
        order = await self.get_order(order_id)
        if expected_version is not None and expected_version != order.version:
            raise ConcurrentUpdate("orders", order_id, expected_version)
        return await self._apply(order, target, actor)

    async def _apply(self, order: OrderRecord, target: OrderStatus, actor: Actor) -> OrderView:
        result = state_machine.transition(order, target, actor, self.clock())
        if not result.changed:
            return await self.view(order)

        updated = await self._write(order, result.patch)
        logger.info(
            "Order status changed",
            order_id=str(updated.id),
            from_status=order.status.value,
            to_status=updated.status.value,
            actor=Actor(actor).value,
        )

        await self.notify(result.side_effects)
        return await self.view(updated)

    async def _write(self, order: OrderRecord, patch: Dict[str, Any]) -> OrderRecord:
        record = await self.store.update("orders", order.id, patch, expected_version=order.version)
        return OrderRecord.model_validate(record)

    async def notify(self, side_effects: Sequence[SideEffect]) -> None:
        """Hand side effects to the dispatcher, in a worker when configured"""
        if not side_effects:
            return

        if settings.notifications_async:
            from kwikqueue.jobs.tasks import dispatch_notifications
            try:
                dispatch_notifications.delay([e.model_dump(mode="json") for e in side_effects])
                return
            except Exception:
                logger.exception("Notification hand-off failed, dispatching inline")

        await self.dispatcher.dispatch(side_effects)

    # History

    async def history(
        self,
        company_id: int,
        status: Optional[str] = None,
        phone: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> OrderHistoryReport:
        """Orders of a company with filters and period aggregates"""
        filters: List[Filter] = [eq("company_id", company_id)]
        log_filters: List[Filter] = [eq("company_id", company_id)]
        if status:
            filters.append(eq("status", parse_status(status)))
        if date_from:
            start = datetime.combine(date_from, time.min)
            filters.append(gte("created_at", start))
            log_filters.append(gte("created_at", start))
        if date_to:
            end = datetime.combine(date_to, time.min) + timedelta(days=1)
            filters.append(lt("created_at", end))
            log_filters.append(lt("created_at", end))

        records = await self.store.get("orders", filters, order_by="created_at", descending=True)
        now = self.clock()
        views = [self.build_view(OrderRecord.model_validate(r), None, now) for r in records]
        if phone:
            digits = phone.strip()
            views = [v for v in views if digits in v.customer_phone]

        sms_logs = await self.store.get("sms_logs", log_filters)
        return build_report(views, sms_logs)


def get_order_service() -> OrderService:
    from kwikqueue.store.sql import get_store
    return OrderService(get_store())
