"""In-process change feed fanning store mutations out to subscribers"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict, Dict, List, Optional, Sequence

from pydantic import BaseModel
import structlog

from kwikqueue.store.filters import Filter, matches_all

logger = structlog.get_logger()


class ChangeEvent(BaseModel):
    """Row-level change notification"""
    table: str
    event_type: str  # INSERT, UPDATE, DELETE
    old: Optional[Dict[str, Any]] = None
    new: Optional[Dict[str, Any]] = None

    @property
    def record(self) -> Optional[Dict[str, Any]]:
        """The row as it is after the change (before it, for deletes)"""
        return self.new if self.new is not None else self.old


Handler = Callable[[ChangeEvent], None]


@dataclass(eq=False)
class _Subscription:
    table: str
    filters: Sequence[Filter]
    handler: Handler

    def wants(self, event: ChangeEvent) -> bool:
        # A row leaving the filtered set (e.g. an update moving it out) is
        # still delivered so subscribers can drop it
        return any(
            row is not None and matches_all(self.filters, row)
            for row in (event.new, event.old)
        )


class ChangeFeed:
    def __init__(self) -> None:
        self._subscriptions: DefaultDict[str, List[_Subscription]] = defaultdict(list)

    def subscribe(
        self,
        table: str,
        filters: Sequence[Filter],
        handler: Handler,
    ) -> Callable[[], None]:
        """Register `handler`; returns the matching unsubscribe callable"""
        subscription = _Subscription(table, tuple(filters), handler)
        self._subscriptions[table].append(subscription)

        def unsubscribe() -> None:
            subscriptions = self._subscriptions.get(table, [])
            if subscription in subscriptions:
                subscriptions.remove(subscription)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscriptions.get(event.table, [])):
            if not subscription.wants(event):
                continue
            try:
                subscription.handler(event)
            except Exception:
                logger.exception("Change handler failed", table=event.table, event_type=event.event_type)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscriptions.get(table, []))
