"""Scoped realtime subscriptions"""

import asyncio
from typing import Any, List, Optional, Tuple

import structlog

from kwikqueue.config import settings
from kwikqueue.domain.errors import RealtimeTimeout
from kwikqueue.domain.status import OPEN_STATUSES
from kwikqueue.realtime.reconciler import Echo, Reconciler
from kwikqueue.store.base import Store
from kwikqueue.store.feed import ChangeEvent
from kwikqueue.store.filters import eq, in_

logger = structlog.get_logger()

TABLES = ("orders", "companies", "products")


class RealtimeSession:
    """
    Live view of one company's open orders, products and company row.

    Acquired with ``async with``: entering loads a snapshot and subscribes,
    leaving always unsubscribes. Events are applied to the reconciler as they
    arrive and queued for consumers of ``next_event``.
    """

    def __init__(
        self,
        store: Store,
        company_id: int,
        timeout_seconds: Optional[float] = None,
        locale: Optional[str] = None,
    ):
        self.store = store
        self.company_id = company_id
        self.timeout_seconds = timeout_seconds or settings.realtime_timeout_seconds
        self.reconciler = Reconciler(locale=locale)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._unsubscribes: List[Any] = []

    async def _load(self) -> None:
        self.reconciler.load(
            "companies", [await self.store.get_by_id("companies", self.company_id)]
        )
        self.reconciler.load(
            "products", await self.store.get("products", [eq("company_id", self.company_id)])
        )
        self.reconciler.load(
            "orders",
            await self.store.get(
                "orders",
                [eq("company_id", self.company_id), in_("status", list(OPEN_STATUSES))],
            ),
        )

    def _on_change(self, event: ChangeEvent) -> None:
        echo = self.reconciler.apply(event)
        self._queue.put_nowait((event, echo))

    async def __aenter__(self) -> "RealtimeSession":
        # Subscribe first so nothing written during the snapshot load is lost;
        # replays are absorbed by the reconciler
        self._unsubscribes = [
            self.store.subscribe("orders", [eq("company_id", self.company_id)], self._on_change),
            self.store.subscribe("products", [eq("company_id", self.company_id)], self._on_change),
            self.store.subscribe("companies", [eq("id", self.company_id)], self._on_change),
        ]
        try:
            await asyncio.wait_for(self._load(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            self.close()
            raise RealtimeTimeout()
        except BaseException:
            self.close()
            raise

        logger.info("Realtime session opened", company_id=self.company_id)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        while self._unsubscribes:
            self._unsubscribes.pop()()

    @property
    def is_open(self) -> bool:
        return bool(self._unsubscribes)

    async def next_event(self, timeout: Optional[float] = None) -> Tuple[ChangeEvent, Optional[Echo]]:
        """Next applied change; raises RealtimeTimeout when none arrives in time"""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            raise RealtimeTimeout("No realtime event received in time")
