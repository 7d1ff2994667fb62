"""
BaseService -- abstract base for all payroll services.

Responsibility:
    Provides the common constructor (session, clock, actor identity) for
    every service.  Subclasses use ``session.flush()`` inside their helpers;
    only the public module-service methods commit or roll back, through
    the ``transaction`` context manager.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: one public operation is one transaction.  A
    failure anywhere rolls back every change made by that operation.

Audit relevance:
    Every concrete subclass logs its state changes through the structured
    logging infrastructure.
"""

from abc import ABC
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import ConcurrentModificationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("services.base")


class BaseService(ABC):
    """
    Abstract base class for payroll services.

    Contract:
        Accepts a SQLAlchemy ``Session`` and an optional ``Clock``.

    Non-goals:
        - Does NOT provide query-only reporting methods -- those belong
          in ``payroll_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    @contextmanager
    def transaction(self, entity_type: str, entity_id: object = None) -> Iterator[Session]:
        """Commit on success, roll back and re-raise on any failure.

        IntegrityError from a unique-constraint race surfaces as
        ConcurrentModificationError.
        """
        try:
            yield self.session
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning(
                "transaction_integrity_conflict",
                extra={"entity_type": entity_type, "entity_id": str(entity_id)},
            )
            raise ConcurrentModificationError(entity_type, str(entity_id)) from exc
        except Exception:
            self.session.rollback()
            raise
