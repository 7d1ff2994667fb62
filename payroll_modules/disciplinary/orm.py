"""
Disciplinary ORM Persistence Models (``payroll_modules.disciplinary.orm``).

Responsibility:
    SQLAlchemy ORM models for disciplinary notices and explanations.

Architecture position:
    **Modules layer** -- persistence companions to
    ``payroll_modules.disciplinary.models``.  Inherits ``TrackedBase``.

Invariants enforced:
    - One explanation per notice (uq_explanation_notice).
    - issued_date and response_deadline never change; resolved notices are
      frozen; explanations are never updated or deleted
      (``payroll_kernel.db.immutability``).
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase
from payroll_modules.disciplinary.models import (
    DisciplinaryNotice,
    Explanation,
    NoticeStatus,
    Sanction,
    ViolationCategory,
)


class DisciplinaryNoticeModel(TrackedBase):
    """
    ORM model for ``DisciplinaryNotice``.

    Contract:
        ``sanction`` is NULL until resolution.  ``suspension_days`` is set
        only for a suspension.
    """

    __tablename__ = "payroll_disciplinary_notices"

    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    violation: Mapped[str] = mapped_column(String(200), nullable=False)
    violation_category: Mapped[str] = mapped_column(String(50), nullable=False, default="others")
    violation_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="issued")
    issued_date: Mapped[date] = mapped_column(Date, nullable=False)
    response_deadline: Mapped[date] = mapped_column(Date, nullable=False)
    issued_by_id: Mapped[UUID] = mapped_column(nullable=False)
    sanction: Mapped[str | None] = mapped_column(String(30), nullable=True)
    suspension_days: Mapped[int | None] = mapped_column(nullable=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    explanation: Mapped["ExplanationModel | None"] = relationship(
        back_populates="notice", uselist=False,
    )

    __table_args__ = (
        Index("idx_disciplinary_employee_status", "employee_id", "status"),
        Index("idx_disciplinary_deadline", "response_deadline"),
    )

    def to_dto(self) -> DisciplinaryNotice:
        return DisciplinaryNotice(
            id=self.id,
            employee_id=self.employee_id,
            violation=self.violation,
            violation_category=ViolationCategory(self.violation_category),
            violation_date=self.violation_date,
            description=self.description,
            status=NoticeStatus(self.status),
            issued_date=self.issued_date,
            response_deadline=self.response_deadline,
            issued_by_id=self.issued_by_id,
            sanction=Sanction(self.sanction) if self.sanction else None,
            suspension_days=self.suspension_days,
            resolution_notes=self.resolution_notes,
            resolved_by_id=self.resolved_by_id,
            resolved_at=self.resolved_at,
        )


class ExplanationModel(TrackedBase):
    """ORM model for ``Explanation``.  Append-only."""

    __tablename__ = "payroll_disciplinary_explanations"

    notice_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_disciplinary_notices.id"), nullable=False,
    )
    explanation_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_late: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    submitted_by_id: Mapped[UUID] = mapped_column(nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    notice: Mapped["DisciplinaryNoticeModel"] = relationship(back_populates="explanation")

    __table_args__ = (
        UniqueConstraint("notice_id", name="uq_explanation_notice"),
    )

    def to_dto(self) -> Explanation:
        return Explanation(
            id=self.id,
            notice_id=self.notice_id,
            explanation_text=self.explanation_text,
            is_late=self.is_late,
            submitted_by_id=self.submitted_by_id,
            submitted_at=self.submitted_at,
        )
