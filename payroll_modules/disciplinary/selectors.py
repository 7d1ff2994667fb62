"""
Disciplinary read models: overdue notices, employee history and sanction
counts used to inform escalation.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from uuid import UUID

from sqlalchemy import select

from payroll_kernel.selectors.base import BaseSelector
from payroll_modules.disciplinary.models import (
    DisciplinaryNotice,
    NoticeHistory,
    NoticeStatus,
    Sanction,
)
from payroll_modules.disciplinary.orm import DisciplinaryNoticeModel


class DisciplinarySelector(BaseSelector):

    def overdue_notices(self, as_of: date) -> list[DisciplinaryNotice]:
        """ISSUED notices whose response deadline is before ``as_of``."""
        stmt = (
            select(DisciplinaryNoticeModel)
            .where(
                DisciplinaryNoticeModel.status == NoticeStatus.ISSUED.value,
                DisciplinaryNoticeModel.response_deadline < as_of,
            )
            .order_by(DisciplinaryNoticeModel.response_deadline)
        )
        return [n.to_dto() for n in self.session.scalars(stmt)]

    def employee_history(self, employee_id: UUID) -> NoticeHistory:
        stmt = (
            select(DisciplinaryNoticeModel)
            .where(DisciplinaryNoticeModel.employee_id == employee_id)
            .order_by(
                DisciplinaryNoticeModel.issued_date.desc(),
                DisciplinaryNoticeModel.created_at.desc(),
            )
        )
        notices = list(self.session.scalars(stmt))
        return NoticeHistory(
            employee_id=employee_id,
            notices=tuple(n.to_dto() for n in notices),
            explanations={
                n.id: n.explanation.to_dto() for n in notices if n.explanation is not None
            },
        )

    def sanction_counts(self, employee_id: UUID) -> dict[Sanction, int]:
        """Resolved sanctions for one employee, ordered by severity."""
        stmt = select(DisciplinaryNoticeModel.sanction).where(
            DisciplinaryNoticeModel.employee_id == employee_id,
            DisciplinaryNoticeModel.status == NoticeStatus.RESOLVED.value,
            DisciplinaryNoticeModel.sanction.is_not(None),
        )
        counts = Counter(Sanction(s) for s in self.session.scalars(stmt))
        return {s: counts[s] for s in sorted(counts, key=lambda s: s.severity)}
