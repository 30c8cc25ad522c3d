"""
Module: workshop_kernel.db.change_feed
Responsibility: Row-level change notifications keyed by table name and
    operation (``*``, ``INSERT``, ``UPDATE``, ``DELETE``), plus ``LiveQuery``,
    a read model that refetches its whole query after any matching change.
Architecture position: Kernel > DB.  Hooks into SQLAlchemy session events;
    MUST NOT import from models/, services/, or outer layers.

Invariants enforced:
    - Changes are collected on flush and delivered only after the owning
      transaction commits.  A rollback discards them.
    - Bulk ``update()``/``delete()`` statements executed through the session
      are reported as table-level events with ``row_id=None``.

Failure modes:
    - A subscriber raising does not undo the commit; the failure is logged
      with its traceback and delivery continues with the next subscriber.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, Iterable, TypeVar
from uuid import UUID

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, sessionmaker

from workshop_kernel.logging_config import get_logger

logger = get_logger("db.change_feed")

_PENDING_KEY = "workshop_pending_changes"

T = TypeVar("T")


class ChangeOperation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


ALL_OPERATIONS = "*"


@dataclass(frozen=True)
class ChangeEvent:
    """One committed row change (``row_id`` is None for bulk statements)."""
    table: str
    operation: ChangeOperation
    row_id: UUID | None = None


Subscriber = Callable[[ChangeEvent], None]


@dataclass
class Subscription:
    feed: "ChangeFeed"
    table: str
    operation: str
    callback: Subscriber
    active: bool = field(default=True)

    def unsubscribe(self) -> None:
        if self.active:
            self.feed._remove(self)
            self.active = False


class ChangeFeed:
    """In-process publisher of committed row changes."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()
        self._attached: list[Session | sessionmaker] = []

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------

    def subscribe(
        self,
        table: str,
        callback: Subscriber,
        operation: str | ChangeOperation = ALL_OPERATIONS,
    ) -> Subscription:
        op = operation.value if isinstance(operation, ChangeOperation) else operation
        if op != ALL_OPERATIONS and op not in ChangeOperation.__members__:
            raise ValueError(f"Unknown change operation: {operation!r}")
        sub = Subscription(self, table, op, callback)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, events: Iterable[ChangeEvent]) -> int:
        """Deliver events to matching subscribers. Returns deliveries made."""
        delivered = 0
        for change in events:
            with self._lock:
                targets = [
                    s for s in self._subscriptions
                    if s.table == change.table
                    and s.operation in (ALL_OPERATIONS, change.operation.value)
                ]
            for sub in targets:
                try:
                    sub.callback(change)
                    delivered += 1
                except Exception:
                    logger.exception(
                        "change_subscriber_failed",
                        extra={"table": change.table, "operation": change.operation.value},
                    )
        return delivered

    # ------------------------------------------------------------------
    # Session wiring
    # ------------------------------------------------------------------

    def attach(self, target: Session | sessionmaker) -> None:
        """Listen to a session (or every session of a factory)."""
        event.listen(target, "after_flush", self._collect_flush)
        event.listen(target, "do_orm_execute", self._collect_bulk)
        event.listen(target, "after_commit", self._deliver)
        event.listen(target, "after_soft_rollback", self._discard)
        self._attached.append(target)

    def detach(self, target: Session | sessionmaker) -> None:
        event.remove(target, "after_flush", self._collect_flush)
        event.remove(target, "do_orm_execute", self._collect_bulk)
        event.remove(target, "after_commit", self._deliver)
        event.remove(target, "after_soft_rollback", self._discard)
        self._attached.remove(target)

    def detach_all(self) -> None:
        for target in list(self._attached):
            self.detach(target)

    @staticmethod
    def _pending(session: Session) -> list[ChangeEvent]:
        return session.info.setdefault(_PENDING_KEY, [])

    def _collect_flush(self, session: Session, flush_context) -> None:
        pending = self._pending(session)
        for obj in session.new:
            pending.append(_row_event(obj, ChangeOperation.INSERT))
        for obj in session.dirty:
            if session.is_modified(obj, include_collections=False):
                pending.append(_row_event(obj, ChangeOperation.UPDATE))
        for obj in session.deleted:
            pending.append(_row_event(obj, ChangeOperation.DELETE))

    def _collect_bulk(self, orm_execute_state) -> None:
        if not (orm_execute_state.is_update or orm_execute_state.is_delete):
            return
        table = getattr(orm_execute_state.statement, "table", None)
        if table is None:
            return
        op = ChangeOperation.DELETE if orm_execute_state.is_delete else ChangeOperation.UPDATE
        self._pending(orm_execute_state.session).append(ChangeEvent(table.name, op))

    def _deliver(self, session: Session) -> None:
        events = session.info.pop(_PENDING_KEY, [])
        if events:
            self.publish(events)

    def _discard(self, session: Session, previous_transaction) -> None:
        if previous_transaction.nested:
            return
        dropped = session.info.pop(_PENDING_KEY, [])
        if dropped:
            logger.debug("changes_discarded", extra={"count": len(dropped)})


def _row_event(obj: object, operation: ChangeOperation) -> ChangeEvent:
    state = inspect(obj)
    table = state.mapper.local_table.name
    return ChangeEvent(table, operation, getattr(obj, "id", None))


class LiveQuery(Generic[T]):
    """
    A read model kept fresh by the change feed.

    Any matching change marks the cached result stale; the next ``result()``
    call refetches the whole query.  No incremental patching is attempted.
    """

    def __init__(self, feed: ChangeFeed, tables: Iterable[str], fetch: Callable[[], T]):
        self._fetch = fetch
        self._result: T | None = None
        self._stale = True
        self.fetch_count = 0
        self.invalidation_count = 0
        self._subs = [feed.subscribe(t, self._invalidate) for t in tables]

    def _invalidate(self, change: ChangeEvent) -> None:
        self._stale = True
        self.invalidation_count += 1

    @property
    def is_stale(self) -> bool:
        return self._stale

    def result(self) -> T:
        if self._stale:
            self._result = self._fetch()
            self._stale = False
            self.fetch_count += 1
        return self._result  # type: ignore[return-value]

    def close(self) -> None:
        for sub in self._subs:
            sub.unsubscribe()
        self._subs = []
