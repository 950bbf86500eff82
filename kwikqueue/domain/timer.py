"""
Preparation timer accounting.

The persisted stopwatch is two fields: ``timer_accumulated_seconds`` (sum of
closed PREPARING intervals) and ``timer_last_started_at`` (set only while the
order is being prepared). Values are written at transition boundaries only;
``elapsed_now`` derives the live figure for display.
"""

import math
from datetime import datetime
from typing import Any, Dict

from kwikqueue.domain.status import OrderStatus, parse_status


def _whole_seconds(later: datetime, earlier: datetime) -> int:
    # Clock skew between writers must never make the total go backwards
    return max(0, math.floor((later - earlier).total_seconds()))


def on_enter_preparing(order: Any, now: datetime) -> Dict[str, Any]:
    """Start (or resume) the stopwatch; prior accumulation is kept"""
    return {"timer_last_started_at": now}


def on_enter_ready_or_delivered(order: Any, now: datetime) -> Dict[str, Any]:
    """
    Close the running interval.

    When PREPARING was skipped entirely the whole queue-to-finish span since
    creation is charged as preparation time. Reports depend on this charge, so
    an order that jumps from RECEIVED to READY still carries a duration.
    """
    accumulated = order.timer_accumulated_seconds or 0
    started_at = order.timer_last_started_at

    if started_at is not None:
        return {
            "timer_accumulated_seconds": accumulated + _whole_seconds(now, started_at),
            "timer_last_started_at": None,
        }

    if accumulated == 0:
        return {
            "timer_accumulated_seconds": _whole_seconds(now, order.created_at),
            "timer_last_started_at": None,
        }

    return {}


def on_enter_cancelled(order: Any) -> Dict[str, Any]:
    """Stop the stopwatch without charging the open interval"""
    return {"timer_last_started_at": None}


def elapsed_now(order: Any, now: datetime) -> int:
    """Live preparation seconds for display; re-evaluate about once a second"""
    accumulated = order.timer_accumulated_seconds or 0
    status = parse_status(order.status)
    if status in (OrderStatus.READY, OrderStatus.DELIVERED) or order.timer_last_started_at is None:
        return accumulated
    return accumulated + _whole_seconds(now, order.timer_last_started_at)


def outcome_for(order: Any, target: OrderStatus, now: datetime) -> Dict[str, Any]:
    """Timer fields to persist when `order` enters `target`"""
    if target == OrderStatus.PREPARING:
        return on_enter_preparing(order, now)
    if target in (OrderStatus.READY, OrderStatus.DELIVERED):
        return on_enter_ready_or_delivered(order, now)
    if target == OrderStatus.CANCELLED:
        return on_enter_cancelled(order)
    return {}
