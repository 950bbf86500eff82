"""
Realtime reconciler.

Merges store change events into local views of orders, companies and
products. Inserts and updates are upserts by id, deletes remove by id. An
order update whose status differs from the locally held one produces an
echo (the chime or banner a tracking screen shows); echoes are emitted at
most once per (order id, status) so duplicated or replayed events are
harmless.

Only open orders are held. An order reaching DELIVERED or CANCELLED is
dropped together with its echo markers, and a bounded record of closed
versions keeps late replays from bringing it back.
"""

from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Iterable, Optional, Set, Tuple

import structlog

from kwikqueue.domain.queue import positions_by_id
from kwikqueue.domain.status import TERMINAL_STATUSES, OrderStatus
from kwikqueue.notifications.templates import tracking_echo
from kwikqueue.schemas.company import CompanyRecord
from kwikqueue.schemas.order import OrderRecord
from kwikqueue.store.feed import ChangeEvent

logger = structlog.get_logger()


@dataclass(frozen=True)
class Echo:
    """Locally observable notice of an order status change"""
    order_id: str
    status: OrderStatus
    previous_status: OrderStatus
    message: Optional[str] = None


EchoHandler = Callable[[Echo], None]


# Recent echoes kept for inspection; older ones are only delivered to on_echo
RECENT_ECHOES = 100

# Closed order versions remembered to reject late replays
CLOSED_MEMORY = 1000


class Reconciler:
    def __init__(self, on_echo: Optional[EchoHandler] = None, locale: Optional[str] = None):
        self.on_echo = on_echo
        self.locale = locale
        self.orders: Dict[str, OrderRecord] = {}
        self.companies: Dict[str, CompanyRecord] = {}
        self.products: Dict[str, Dict[str, Any]] = {}
        self.echoes: Deque[Echo] = deque(maxlen=RECENT_ECHOES)
        self._echoed: Set[Tuple[str, OrderStatus]] = set()
        self._closed: "OrderedDict[str, int]" = OrderedDict()
        self._positions: Optional[Dict[str, int]] = None

    def load(self, table: str, records: Iterable[Dict[str, Any]]) -> None:
        """Seed a view from a snapshot without producing echoes"""
        for record in records:
            self._upsert(table, record)

    def apply(self, event: ChangeEvent) -> Optional[Echo]:
        if event.event_type == "DELETE":
            if event.old is not None:
                self._remove(event.table, event.old)
            return None

        if event.new is None:
            return None

        if event.table != "orders":
            self._upsert(event.table, event.new)
            return None

        incoming = OrderRecord.model_validate(event.new)
        key = str(incoming.id)
        held = self.orders.get(key)

        if self._is_stale(incoming, held):
            logger.debug("Stale order event ignored", order_id=key, version=incoming.version)
            return None

        echo = None
        if held is not None and held.status != incoming.status:
            echo = self._echo(incoming, held.status)

        if incoming.status in TERMINAL_STATUSES:
            self._close(incoming)
        else:
            self.orders[key] = incoming
        self._positions = None
        return echo

    def _is_stale(self, incoming: OrderRecord, held: Optional[OrderRecord]) -> bool:
        if held is not None:
            return incoming.version < held.version
        closed_version = self._closed.get(str(incoming.id))
        return closed_version is not None and incoming.version <= closed_version

    def _close(self, order: OrderRecord) -> None:
        """Drop a finished order and its echo markers"""
        key = str(order.id)
        self._forget(key)
        self._closed[key] = order.version
        self._closed.move_to_end(key)
        while len(self._closed) > CLOSED_MEMORY:
            self._closed.popitem(last=False)

    def _forget(self, key: str) -> None:
        self.orders.pop(key, None)
        self._echoed = {marker for marker in self._echoed if marker[0] != key}
        self._positions = None

    def _echo(self, order: OrderRecord, previous: OrderStatus) -> Optional[Echo]:
        marker = (str(order.id), order.status)
        if marker in self._echoed:
            return None
        self._echoed.add(marker)

        echo = Echo(
            order_id=str(order.id),
            status=order.status,
            previous_status=previous,
            message=tracking_echo(order.status, self.locale),
        )
        self.echoes.append(echo)
        if self.on_echo is not None:
            self.on_echo(echo)
        return echo

    def _upsert(self, table: str, record: Dict[str, Any]) -> None:
        if table == "orders":
            order = OrderRecord.model_validate(record)
            if self._is_stale(order, self.orders.get(str(order.id))):
                return
            if order.status in TERMINAL_STATUSES:
                self._close(order)
            else:
                self.orders[str(order.id)] = order
            self._positions = None
        elif table == "companies":
            company = CompanyRecord.model_validate(record)
            self.companies[str(company.id)] = company
        elif table == "products":
            self.products[str(record["id"])] = dict(record)

    def _remove(self, table: str, record: Dict[str, Any]) -> None:
        key = str(record.get("id"))
        if table == "orders":
            self._forget(key)
        elif table == "companies":
            self.companies.pop(key, None)
        elif table == "products":
            self.products.pop(key, None)

    @property
    def positions(self) -> Dict[str, int]:
        """Queue positions of the active orders held locally"""
        if self._positions is None:
            self._positions = positions_by_id(self.orders.values())
        return self._positions

    def position_of(self, order_id: Any) -> Optional[int]:
        return self.positions.get(str(order_id))
