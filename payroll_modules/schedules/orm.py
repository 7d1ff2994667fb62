"""
Statutory Schedule ORM (``payroll_modules.schedules.orm``).

Responsibility:
    Persist statutory schedules as versioned, dated rows so historical
    payroll can be recomputed against the table in force at the time.

Invariants enforced:
    - version is unique.
    - payload is the raw schedule document; checksum is its SHA-256.
"""

from datetime import date
from typing import Any

from sqlalchemy import JSON, Boolean, Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase


class StatutoryScheduleModel(TrackedBase):
    """One published schedule version."""

    __tablename__ = "payroll_statutory_schedules"

    version: Mapped[str] = mapped_column(String(50), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    checksum: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint("version", name="uq_statutory_schedule_version"),
        Index("idx_statutory_schedule_active_date", "is_active", "effective_date"),
    )

    def __repr__(self) -> str:
        return f"<StatutoryScheduleModel {self.version} from {self.effective_date}>"
