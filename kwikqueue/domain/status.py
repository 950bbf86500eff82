"""Closed enumerations used across the queue engine"""

import enum
from typing import Any

from kwikqueue.domain.errors import UnknownStatus


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderType(str, enum.Enum):
    EAT_IN = "EAT_IN"
    TAKE_AWAY = "TAKE_AWAY"
    DELIVERY = "DELIVERY"


class ProductStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class Actor(str, enum.Enum):
    """Who issued a command; recorded as cancelled_by on cancellation"""
    CUSTOMER = "customer"
    ADMIN = "admin"


# Counted in queue-position math
ACTIVE_STATUSES = frozenset({OrderStatus.RECEIVED, OrderStatus.PREPARING, OrderStatus.READY})

# A customer holding one of these is redirected instead of joining again
OPEN_STATUSES = ACTIVE_STATUSES | {OrderStatus.PENDING}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def parse_status(value: Any) -> OrderStatus:
    """Convert an untrusted status value from the store into OrderStatus"""
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str):
        try:
            return OrderStatus(value.strip().upper())
        except ValueError:
            pass
    raise UnknownStatus(value)
