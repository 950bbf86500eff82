"""Persistent store adapter interface"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from kwikqueue.store.feed import Handler
from kwikqueue.store.filters import Filter

Record = Dict[str, Any]


class Store(ABC):
    """CRUD plus change subscription over named record collections"""

    @abstractmethod
    async def get(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """Records matching every filter"""
        pass

    @abstractmethod
    async def get_by_id(self, collection: str, record_id: Any) -> Record:
        """Single record; raises RecordNotFound"""
        pass

    @abstractmethod
    async def insert(self, collection: str, data: Record) -> Record:
        pass

    @abstractmethod
    async def update(
        self,
        collection: str,
        record_id: Any,
        data: Record,
        expected_version: Optional[int] = None,
    ) -> Record:
        """
        Atomic single-row update. With `expected_version` the write only
        applies if the row still carries that version (ConcurrentUpdate
        otherwise).
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, record_id: Any) -> None:
        pass

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        filters: Sequence[Filter],
        on_change: Handler,
    ) -> Callable[[], None]:
        """Receive change events for matching rows until unsubscribed"""
        pass
