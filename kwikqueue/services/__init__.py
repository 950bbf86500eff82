"""Application services orchestrating the queue engine over the store"""

from kwikqueue.services.orders import OrderService, get_order_service

__all__ = ["OrderService", "get_order_service"]
