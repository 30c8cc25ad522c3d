"""Database layer - engine, base classes, types, and change feed."""

from workshop_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from workshop_kernel.db.change_feed import ChangeEvent, ChangeFeed, ChangeOperation, LiveQuery
from workshop_kernel.db.engine import (
    create_tables,
    get_engine,
    init_engine_from_url,
)
from workshop_kernel.db.types import Money, Points

__all__ = [
    "get_engine",
    "create_tables",
    "init_engine_from_url",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "Money",
    "Points",
    "ChangeEvent",
    "ChangeFeed",
    "ChangeOperation",
    "LiveQuery",
]
