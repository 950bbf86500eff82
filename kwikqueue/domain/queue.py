"""Queue position and wait estimates"""

from typing import Any, Dict, Iterable, Optional

from kwikqueue.domain.status import ACTIVE_STATUSES, parse_status


def is_active(order: Any) -> bool:
    return parse_status(order.status) in ACTIVE_STATUSES


def compute_position(order: Any, company_orders: Iterable[Any]) -> Optional[int]:
    """
    1 + the number of active orders of the same company created strictly
    earlier. Orders outside the active states have no position.
    """
    if not is_active(order):
        return None

    ahead = sum(
        1
        for other in company_orders
        if other.company_id == order.company_id
        and is_active(other)
        and other.created_at < order.created_at
    )
    return ahead + 1


def positions_by_id(company_orders: Iterable[Any]) -> Dict[str, int]:
    """Positions of every active order in one pass (FIFO by creation time)"""
    by_company: Dict[Any, list] = {}
    for order in company_orders:
        if is_active(order):
            by_company.setdefault(order.company_id, []).append(order)

    positions: Dict[str, int] = {}
    for orders in by_company.values():
        orders.sort(key=lambda o: o.created_at)
        position = 0
        previous_created_at = None
        for index, order in enumerate(orders):
            # Equal timestamps share a position; neither is strictly earlier
            if order.created_at != previous_created_at:
                position = index + 1
                previous_created_at = order.created_at
            positions[str(order.id)] = position
    return positions


def estimate_minutes(orders_ahead: int, base_minutes: int, minutes_per_order: int) -> int:
    """Informational wait estimate shown at join time"""
    return base_minutes + minutes_per_order * max(0, orders_ahead)
