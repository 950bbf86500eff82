"""Shared request dependencies"""

from fastapi import Depends

from kwikqueue.notifications.dispatcher import NotificationDispatcher
from kwikqueue.services.orders import OrderService
from kwikqueue.store import sql
from kwikqueue.store.base import Store


def get_store() -> Store:
    """Application store; overridden in tests"""
    return sql.get_store()


def get_dispatcher(store: Store = Depends(get_store)) -> NotificationDispatcher:
    return NotificationDispatcher(store)


def get_order_service(
    store: Store = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> OrderService:
    return OrderService(store, dispatcher)
