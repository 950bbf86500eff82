"""SQLAlchemy-backed store adapter"""

import enum
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from sqlalchemy import inspect, select, update
from sqlalchemy import Integer, Uuid
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from kwikqueue.database import Base
from kwikqueue.domain.errors import ConcurrentUpdate, RecordNotFound, StoreFailure, StoreWriteFailure
from kwikqueue.models import Company, Customer, Order, Product, SmsLog
from kwikqueue.store.base import Record, Store
from kwikqueue.store.feed import ChangeEvent, ChangeFeed, Handler
from kwikqueue.store.filters import Filter

logger = structlog.get_logger()

COLLECTIONS: Dict[str, Type[Base]] = {
    "companies": Company,
    "products": Product,
    "orders": Order,
    "customers": Customer,
    "sms_logs": SmsLog,
}


def to_record(instance: Base) -> Record:
    """Column values of an ORM instance keyed by column name"""
    return {attr.key: getattr(instance, attr.key) for attr in inspect(instance).mapper.column_attrs}


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return value


class SqlStore(Store):
    """Store adapter over an async SQLAlchemy session factory"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        feed: Optional[ChangeFeed] = None,
    ):
        self._session_factory = session_factory
        self.feed = feed or ChangeFeed()

    def _model(self, collection: str) -> Type[Base]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}")

    def _coerce(self, model: Type[Base], field: str, value: Any) -> Any:
        column = model.__table__.columns[field]
        if isinstance(column.type, Uuid) and isinstance(value, str):
            try:
                return uuid.UUID(value)
            except ValueError:
                raise RecordNotFound(model.__tablename__, value)
        if isinstance(column.type, Integer) and isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                raise RecordNotFound(model.__tablename__, value)
        return _plain(value)

    def _filter_clause(self, model: Type[Base], f: Filter):
        if f.op == "in":
            value = tuple(self._coerce(model, f.field, v) for v in f.value)
        else:
            value = self._coerce(model, f.field, f.value)
        return Filter(f.field, f.op, value).to_clause(model)

    def _values(self, model: Type[Base], data: Record) -> Record:
        columns = model.__table__.columns
        unknown = set(data) - set(columns.keys())
        if unknown:
            raise ValueError(f"Unknown fields for {model.__tablename__}: {sorted(unknown)}")
        return {key: self._coerce(model, key, value) for key, value in data.items()}

    async def get(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        model = self._model(collection)
        query = select(model)
        for f in filters:
            query = query.where(self._filter_clause(model, f))
        if order_by:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if limit:
            query = query.limit(limit)

        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return [to_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            logger.error("Store read failed", collection=collection, error=str(exc))
            raise StoreFailure(str(exc)) from exc

    async def get_by_id(self, collection: str, record_id: Any) -> Record:
        model = self._model(collection)
        pk = self._coerce(model, "id", record_id)
        try:
            async with self._session_factory() as session:
                instance = await session.get(model, pk)
        except SQLAlchemyError as exc:
            logger.error("Store read failed", collection=collection, error=str(exc))
            raise StoreFailure(str(exc)) from exc

        if instance is None:
            raise RecordNotFound(collection, record_id)
        return to_record(instance)

    async def insert(self, collection: str, data: Record) -> Record:
        model = self._model(collection)
        instance = model(**self._values(model, data))

        async with self._session_factory() as session:
            try:
                session.add(instance)
                await session.commit()
                await session.refresh(instance)
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Store insert failed", collection=collection, error=str(exc))
                raise StoreWriteFailure(str(exc)) from exc
            record = to_record(instance)

        self.feed.publish(ChangeEvent(table=collection, event_type="INSERT", new=record))
        return record

    async def update(
        self,
        collection: str,
        record_id: Any,
        data: Record,
        expected_version: Optional[int] = None,
    ) -> Record:
        model = self._model(collection)
        pk = self._coerce(model, "id", record_id)
        values = self._values(model, data)
        versioned = "version" in model.__table__.columns

        async with self._session_factory() as session:
            try:
                instance = await session.get(model, pk)
                if instance is None:
                    raise RecordNotFound(collection, record_id)
                old = to_record(instance)

                stmt = update(model).where(model.id == pk)
                if versioned:
                    values["version"] = model.version + 1
                    if expected_version is not None:
                        stmt = stmt.where(model.version == expected_version)

                result = await session.execute(
                    stmt.values(**values).execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    await session.rollback()
                    raise ConcurrentUpdate(collection, record_id, expected_version)

                await session.commit()
                await session.refresh(instance)
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Store update failed", collection=collection, record_id=str(record_id), error=str(exc))
                raise StoreWriteFailure(str(exc)) from exc
            new = to_record(instance)

        self.feed.publish(ChangeEvent(table=collection, event_type="UPDATE", old=old, new=new))
        return new

    async def delete(self, collection: str, record_id: Any) -> None:
        model = self._model(collection)
        pk = self._coerce(model, "id", record_id)

        async with self._session_factory() as session:
            try:
                instance = await session.get(model, pk)
                if instance is None:
                    raise RecordNotFound(collection, record_id)
                old = to_record(instance)
                await session.delete(instance)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Store delete failed", collection=collection, record_id=str(record_id), error=str(exc))
                raise StoreWriteFailure(str(exc)) from exc

        self.feed.publish(ChangeEvent(table=collection, event_type="DELETE", old=old))

    def subscribe(
        self,
        collection: str,
        filters: Sequence[Filter],
        on_change: Handler,
    ) -> Callable[[], None]:
        self._model(collection)
        return self.feed.subscribe(collection, filters, on_change)


_store: Optional[SqlStore] = None


def get_store() -> SqlStore:
    """Process-wide store bound to the application session factory"""
    global _store
    if _store is None:
        from kwikqueue.database import SessionLocal
        _store = SqlStore(SessionLocal)
    return _store
