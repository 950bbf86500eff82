"""Persistent store adapter"""

from kwikqueue.store.base import Record, Store
from kwikqueue.store.feed import ChangeEvent, ChangeFeed
from kwikqueue.store.filters import Filter, eq, gte, in_, lt, neq
from kwikqueue.store.sql import COLLECTIONS, SqlStore, get_store, to_record

__all__ = [
    "Record",
    "Store",
    "ChangeEvent",
    "ChangeFeed",
    "Filter",
    "eq",
    "neq",
    "in_",
    "gte",
    "lt",
    "COLLECTIONS",
    "SqlStore",
    "get_store",
    "to_record",
]
