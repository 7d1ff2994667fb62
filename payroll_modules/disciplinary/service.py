"""
Disciplinary Service (``payroll_modules.disciplinary.service``).

Responsibility
--------------
Issue notices to explain, accept the employee's single explanation and
record HR's resolution with a sanction.

Architecture position
---------------------
**Modules layer** -- ``DisciplinaryService`` is the sole public entry point
for notice changes.  Read-only reporting lives in ``selectors.py``.

Invariants enforced
-------------------
* response_deadline = issued date + ``RESPONSE_WINDOW_DAYS``, set once.
* Explanations are accepted only while ISSUED, at most one per notice;
  ``is_late`` is true when submitted after the deadline.
* Resolution requires a sanction; RESOLVED is terminal.

Failure modes
-------------
* ``ValidationError`` -- blank violation or explanation text, unknown
  sanction or category, suspension days missing or misplaced.
* ``SanctionRequiredError`` -- resolution without a sanction.
* ``DuplicateExplanationError`` -- a second explanation.
* ``InvalidTransitionError`` -- any change to a RESOLVED notice.
"""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock
from payroll_kernel.exceptions import (
    DuplicateExplanationError,
    NotFoundError,
    SanctionRequiredError,
    ValidationError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.services.base import BaseService
from payroll_modules.disciplinary.models import (
    RESPONSE_WINDOW_DAYS,
    DisciplinaryNotice,
    Explanation,
    NoticeStatus,
    Sanction,
    ViolationCategory,
)
from payroll_modules.disciplinary.orm import DisciplinaryNoticeModel, ExplanationModel
from payroll_modules.disciplinary.workflows import DISCIPLINARY_NOTICE_WORKFLOW
from payroll_modules.payroll.collaborators import AuditSink, LoggingAuditSink, emit_audit

logger = get_logger("modules.disciplinary.service")


class DisciplinaryService(BaseService):
    """Notice lifecycle.  One public call, one transaction."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        audit: AuditSink | None = None,
    ):
        super().__init__(session, clock)
        self.audit = audit or LoggingAuditSink()

    def issue_notice(
        self,
        employee_id: UUID,
        violation: str,
        actor_id: UUID,
        description: str | None = None,
        violation_category: ViolationCategory | str = ViolationCategory.OTHERS,
        violation_date: date | None = None,
    ) -> DisciplinaryNotice:
        """Issue a notice dated today with a fixed response deadline."""
        if not violation or not violation.strip():
            raise ValidationError("violation", "violation is required")
        category = _parse_enum(ViolationCategory, violation_category, "violation_category")
        issued = self.clock.today()

        with self.transaction("disciplinary_notice"):
            notice = DisciplinaryNoticeModel(
                employee_id=employee_id,
                violation=violation.strip(),
                violation_category=category.value,
                violation_date=violation_date or issued,
                description=(description or violation).strip(),
                status=NoticeStatus.ISSUED.value,
                issued_date=issued,
                response_deadline=issued + timedelta(days=RESPONSE_WINDOW_DAYS),
                issued_by_id=actor_id,
                created_by_id=actor_id,
            )
            self.session.add(notice)
            self.session.flush()

        logger.info("disciplinary_notice_issued", extra={
            "notice_id": str(notice.id),
            "employee_id": str(employee_id),
            "violation_category": category.value,
            "response_deadline": notice.response_deadline.isoformat(),
        })
        emit_audit(self.audit, "notice_issued", "DisciplinaryNotice", notice.id, actor_id)
        return notice.to_dto()

    def submit_explanation(
        self, notice_id: UUID, text: str, actor_id: UUID,
    ) -> Explanation:
        """Record the employee's answer.  Late answers are accepted and flagged."""
        if not text or not text.strip():
            raise ValidationError("explanation_text", "explanation text is required")

        with self.transaction("disciplinary_notice", notice_id):
            notice = self._load(notice_id, lock=True)
            if notice.explanation is not None:
                raise DuplicateExplanationError(str(notice_id))
            DISCIPLINARY_NOTICE_WORKFLOW.require_transition(
                notice_id, notice.status, NoticeStatus.EXPLANATION_RECEIVED,
            )

            is_late = self.clock.today() > notice.response_deadline
            explanation = ExplanationModel(
                notice_id=notice.id,
                explanation_text=text.strip(),
                is_late=is_late,
                submitted_by_id=actor_id,
                submitted_at=self.clock.now(),
                created_by_id=actor_id,
            )
            notice.explanation = explanation
            notice.status = NoticeStatus.EXPLANATION_RECEIVED.value
            notice.updated_by_id = actor_id
            self.session.flush()

        logger.info("disciplinary_explanation_submitted", extra={
            "notice_id": str(notice_id),
            "is_late": is_late,
        })
        emit_audit(
            self.audit, "explanation_submitted", "DisciplinaryNotice", notice_id, actor_id,
            {"is_late": is_late},
        )
        return explanation.to_dto()

    def resolve_notice(
        self,
        notice_id: UUID,
        sanction: Sanction | str | None,
        notes: str | None,
        actor_id: UUID,
        suspension_days: int | None = None,
    ) -> DisciplinaryNotice:
        """Close the notice with a sanction.  No change is possible afterward.

        A suspension needs a positive number of days; other sanctions take none.
        """
        if sanction is None or (isinstance(sanction, str) and not sanction.strip()):
            raise SanctionRequiredError(str(notice_id))
        chosen = _parse_enum(Sanction, sanction, "sanction")
        if chosen is Sanction.SUSPENSION:
            if suspension_days is None or suspension_days <= 0:
                raise ValidationError(
                    "suspension_days", "a suspension needs a positive number of days",
                )
        elif suspension_days is not None:
            raise ValidationError("suspension_days", "only a suspension has suspension days")

        with self.transaction("disciplinary_notice", notice_id):
            notice = self._load(notice_id, lock=True)
            DISCIPLINARY_NOTICE_WORKFLOW.require_transition(
                notice_id, notice.status, NoticeStatus.RESOLVED,
            )
            notice.status = NoticeStatus.RESOLVED.value
            notice.sanction = chosen.value
            notice.suspension_days = suspension_days
            notice.resolution_notes = notes
            notice.resolved_by_id = actor_id
            notice.resolved_at = self.clock.now()
            notice.updated_by_id = actor_id

        logger.info("disciplinary_notice_resolved", extra={
            "notice_id": str(notice_id),
            "sanction": chosen.value,
            "suspension_days": suspension_days,
        })
        emit_audit(
            self.audit, "notice_resolved", "DisciplinaryNotice", notice_id, actor_id,
            {"sanction": chosen.value},
        )
        return notice.to_dto()

    def get_notice(self, notice_id: UUID) -> DisciplinaryNotice:
        return self._load(notice_id).to_dto()

    def _load(self, notice_id: UUID, lock: bool = False) -> DisciplinaryNoticeModel:
        stmt = select(DisciplinaryNoticeModel).where(DisciplinaryNoticeModel.id == notice_id)
        if lock:
            stmt = stmt.with_for_update()
        notice = self.session.scalars(stmt).one_or_none()
        if notice is None:
            raise NotFoundError("DisciplinaryNotice", str(notice_id))
        return notice


def _parse_enum(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field_name, f"must be one of: {allowed}") from None
