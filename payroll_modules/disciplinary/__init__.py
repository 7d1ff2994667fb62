"""
Disciplinary Module (``payroll_modules.disciplinary``).

Twin-notice process: a notice to explain is issued with a five-day response
window, the employee may answer once, and HR resolves it with a sanction.
"""

from payroll_modules.disciplinary.models import (
    RESPONSE_WINDOW_DAYS,
    DisciplinaryNotice,
    Explanation,
    NoticeHistory,
    NoticeStatus,
    Sanction,
    ViolationCategory,
)
from payroll_modules.disciplinary.workflows import DISCIPLINARY_NOTICE_WORKFLOW

__all__ = [
    "DISCIPLINARY_NOTICE_WORKFLOW",
    "DisciplinaryNotice",
    "Explanation",
    "NoticeHistory",
    "NoticeStatus",
    "RESPONSE_WINDOW_DAYS",
    "Sanction",
    "ViolationCategory",
]
