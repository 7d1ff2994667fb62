"""
Disciplinary Domain Models (``payroll_modules.disciplinary.models``).

Responsibility
--------------
Frozen value objects for the twin-notice disciplinary process: the notice
to explain, the employee's explanation and the HR resolution.

Invariants enforced
-------------------
* ``sanction`` is set exactly when ``status`` is RESOLVED.
* ``suspension_days`` is set exactly when the sanction is SUSPENSION.
* ``response_deadline`` is fixed at issue time.
* At most one explanation per notice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID

# Calendar days an employee has to answer a notice.
RESPONSE_WINDOW_DAYS = 5


class NoticeStatus(str, Enum):
    """Disciplinary notice lifecycle states."""
    ISSUED = "issued"
    EXPLANATION_RECEIVED = "explanation_received"
    RESOLVED = "resolved"


class Sanction(str, Enum):
    """Disciplinary actions, least to most severe."""
    VERBAL_WARNING = "verbal_warning"
    WRITTEN_WARNING = "written_warning"
    SUSPENSION = "suspension"
    TERMINATION = "termination"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    Sanction.VERBAL_WARNING: 1,
    Sanction.WRITTEN_WARNING: 2,
    Sanction.SUSPENSION: 3,
    Sanction.TERMINATION: 4,
}


class ViolationCategory(str, Enum):
    ATTENDANCE = "attendance"
    CONDUCT = "conduct"
    PERFORMANCE = "performance"
    POLICY = "policy"
    SAFETY = "safety"
    INTEGRITY = "integrity"
    OTHERS = "others"


@dataclass(frozen=True)
class DisciplinaryNotice:
    """A notice to explain issued to one employee."""
    id: UUID
    employee_id: UUID
    violation: str
    violation_category: ViolationCategory
    violation_date: date
    description: str
    status: NoticeStatus
    issued_date: date
    response_deadline: date
    issued_by_id: UUID
    sanction: Sanction | None = None
    suspension_days: int | None = None
    resolution_notes: str | None = None
    resolved_by_id: UUID | None = None
    resolved_at: datetime | None = None

    def is_overdue(self, as_of: date) -> bool:
        """Still waiting for an explanation after the deadline."""
        return self.status is NoticeStatus.ISSUED and as_of > self.response_deadline


@dataclass(frozen=True)
class Explanation:
    """The employee's written answer to a notice."""
    id: UUID
    notice_id: UUID
    explanation_text: str
    is_late: bool
    submitted_by_id: UUID
    submitted_at: datetime


@dataclass(frozen=True)
class NoticeHistory:
    """One employee's notices with their explanations, newest first."""
    employee_id: UUID
    notices: tuple[DisciplinaryNotice, ...] = ()
    explanations: dict[UUID, Explanation] = field(default_factory=dict)

    @property
    def most_severe_sanction(self) -> Sanction | None:
        sanctions = [n.sanction for n in self.notices if n.sanction is not None]
        if not sanctions:
            return None
        return max(sanctions, key=lambda s: s.severity)
