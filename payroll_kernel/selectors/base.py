"""
Module: payroll_kernel.selectors.base
Responsibility: Base for read-only query objects (period summaries, the
    payroll register, overdue notices, disciplinary history).

Selectors never add, flush or commit, and return frozen DTOs rather than
ORM rows.  The caller owns the session and its transaction.
"""

from abc import ABC
from typing import TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_kernel.exceptions import NotFoundError

RowT = TypeVar("RowT")


class BaseSelector(ABC):

    def __init__(self, session: Session):
        self.session = session

    def _require(self, model: type[RowT], entity_id: UUID, entity_type: str) -> RowT:
        """Row by primary key, or NotFoundError naming ``entity_type``."""
        row = self.session.get(model, entity_id)
        if row is None:
            raise NotFoundError(entity_type, str(entity_id))
        return row
