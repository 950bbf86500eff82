"""
Order state machine.

``transition`` validates a status change against the guard rules and returns
the fields to persist together with the side effects (notifications) the
change calls for. It never touches storage; callers write the patch in a
single conditional row update.

    PENDING -> RECEIVED -> PREPARING -> READY -> DELIVERED
       \\           \\            \\
        +-----------+------------+--> CANCELLED

RECEIVED is entered through ``confirm_cart`` only. READY may also be reached
straight from RECEIVED, in which case the timer charges the time since
creation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from kwikqueue.domain import timer
from kwikqueue.domain.errors import InvalidCart, InvalidTransition
from kwikqueue.domain.status import Actor, OrderStatus, OrderType, parse_status

ALLOWED_SOURCES: Dict[OrderStatus, frozenset] = {
    OrderStatus.PREPARING: frozenset({OrderStatus.RECEIVED, OrderStatus.PREPARING}),
    OrderStatus.READY: frozenset({OrderStatus.RECEIVED, OrderStatus.PREPARING, OrderStatus.READY}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.READY}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.PENDING, OrderStatus.RECEIVED, OrderStatus.PREPARING}),
}

CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.RECEIVED})

# Statuses that send the customer an SMS when entered
SMS_STATUSES = frozenset({
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
})

NEW_ORDER_TEMPLATE = "NEW_ORDER"


class SideEffect(BaseModel):
    """Non-persisted instruction emitted alongside a successful change"""
    kind: str = "notify"
    channel: str  # sms, telegram
    template_key: str
    order_type: OrderType = OrderType.EAT_IN
    order_id: str
    company_id: int
    ticket_code: str
    recipient: Optional[str] = None
    cancelled_by: Optional[Actor] = None


class LineItem(BaseModel):
    """Order line with the product price frozen at confirmation time"""
    product_id: str
    name: str
    quantity: int
    unit_price: int
    observation: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class TransitionResult:
    patch: Dict[str, Any] = field(default_factory=dict)
    side_effects: List[SideEffect] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.patch)


def transition(order: Any, target: Any, actor: Actor, now: datetime) -> TransitionResult:
    """Validate and compute a status change for `order`"""
    current = parse_status(order.status)
    target = parse_status(target)
    actor = Actor(actor)

    if target not in ALLOWED_SOURCES:
        raise InvalidTransition(current, target, "status is not reachable through a transition")

    if actor == Actor.CUSTOMER and target != OrderStatus.CANCELLED:
        raise InvalidTransition(current, target, "customers may only cancel")

    if current not in ALLOWED_SOURCES[target]:
        raise InvalidTransition(current, target)

    if actor == Actor.CUSTOMER and current not in CUSTOMER_CANCELLABLE:
        raise InvalidTransition(current, target, "order is already being prepared")

    # Re-entering the current state is a no-op
    if current == target:
        return TransitionResult()

    patch: Dict[str, Any] = {"status": target}
    patch.update(timer.outcome_for(order, target, now))
    if target == OrderStatus.CANCELLED:
        patch["cancelled_by"] = actor

    return TransitionResult(patch=patch, side_effects=_side_effects(order, target, actor))


def _side_effects(order: Any, target: OrderStatus, actor: Actor) -> List[SideEffect]:
    effects = []
    cancelled_by = actor if target == OrderStatus.CANCELLED else None

    # A customer who cancels does not get a message about it
    notify_customer = target in SMS_STATUSES and not (
        target == OrderStatus.CANCELLED and actor == Actor.CUSTOMER
    )
    if notify_customer and order.customer_phone:
        effects.append(_effect(order, "sms", target.value, cancelled_by, order.customer_phone))

    effects.append(_effect(order, "telegram", target.value, cancelled_by))
    return effects


def new_order_alert(order: Any) -> SideEffect:
    """Staff alert for a freshly confirmed cart"""
    return _effect(order, "telegram", NEW_ORDER_TEMPLATE)


def _effect(
    order: Any,
    channel: str,
    template_key: str,
    cancelled_by: Optional[Actor] = None,
    recipient: Optional[str] = None,
) -> SideEffect:
    return SideEffect(
        channel=channel,
        template_key=template_key,
        order_type=order.order_type or OrderType.EAT_IN,
        order_id=str(order.id),
        company_id=order.company_id,
        ticket_code=order.ticket_code,
        recipient=recipient,
        cancelled_by=cancelled_by,
    )


def confirm_cart(order: Any, items: Sequence[LineItem]) -> Dict[str, Any]:
    """Freeze the cart: status RECEIVED, snapshot items and their total"""
    current = parse_status(order.status)
    if current != OrderStatus.PENDING:
        raise InvalidTransition(current, OrderStatus.RECEIVED, "cart was already confirmed")

    if not items:
        raise InvalidCart("Cart is empty")

    for item in items:
        if item.quantity < 1:
            raise InvalidCart(f"Invalid quantity for {item.name}")
        if item.unit_price < 0:
            raise InvalidCart(f"Invalid price for {item.name}")

    return {
        "status": OrderStatus.RECEIVED,
        "items": [item.model_dump(mode="json") for item in items],
        "total": sum(item.subtotal for item in items),
    }
