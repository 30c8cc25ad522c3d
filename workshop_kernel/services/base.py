"""
BaseService -- abstract base for workshop services.

Responsibility:
    Provides the common constructor, clock injection and transaction
    boundary used by every service that writes.

Invariants enforced:
    - A public write method either commits all of its writes or none: the
      ``_unit_of_work`` scope commits on success and rolls back on any
      exception before re-raising.
    - With ``auto_commit=False`` the service only flushes, so a caller can
      compose several services inside one transaction (the bike workflow
      consumes inventory this way).

Failure modes:
    - SQLAlchemyError raised by the backend is re-raised as PersistenceError
      after rollback.  Domain errors (WorkshopKernelError) pass through
      unchanged.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workshop_kernel.domain.clock import Clock, SystemClock
from workshop_kernel.exceptions import PersistenceError
from workshop_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.base")


class BaseService(ABC):
    """
    Abstract base class for workshop services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller.  Read-only queries
        belong in selectors; services only validate and write.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.auto_commit = auto_commit

    @contextmanager
    def _unit_of_work(self, operation: str, actor_id: UUID | None = None) -> Iterator[Session]:
        with LogContext.bind(actor_id=actor_id):
            try:
                yield self.session
                if self.auto_commit:
                    self.session.commit()
                else:
                    self.session.flush()
            except SQLAlchemyError as exc:
                self._rollback(operation)
                raise PersistenceError(operation, str(exc.__cause__ or exc)) from exc
            except Exception:
                self._rollback(operation)
                raise

    def _rollback(self, operation: str) -> None:
        if not self.auto_commit:
            # The composing caller owns the rollback.
            return
        self.session.rollback()
        logger.warning(
            "transaction_rolled_back",
            extra={"operation": operation},
            exc_info=True,
        )
