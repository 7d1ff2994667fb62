"""
Payroll Module Service (``payroll_modules.payroll.service``).

Responsibility
--------------
Orchestrates the per-period payroll lifecycle -- pay period creation and
closing, DRAFT generation for every eligible employee, DRAFT adjustment and
deletion, approval (which commits salary advance deductions) and release
(which issues the payslip snapshot) -- by delegating pure computation to
``payroll_engines`` and balance changes to ``payroll_modules.advances``.

Architecture position
---------------------
**Modules layer** -- ``PayrollService`` is the sole public entry point for
payroll record changes.  It composes the external collaborators (employee
directory, attendance, leave, audit sink), the schedule registry from
``payroll_config`` and ``AdvanceService`` for the ledger.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (commit on success,
  rollback on failure or exception).
* One record per (employee, period); regeneration updates the DRAFT row
  in place and never touches APPROVED or RELEASED rows.
* Earnings and deduction lines change only while DRAFT.
* Approval locks the record and its advances, applies the ledger and moves
  the record to APPROVED in ONE transaction; the cash advance line is
  reconciled to what the ledger actually applied.
* Totals are recomputed together, never individually.

Failure modes
-------------
* ``PeriodClosedError`` -- generation against a closed period.
* ``PeriodOverlapError`` -- new period overlaps one of the same cutoff kind.
* ``PeriodNotClosableError`` -- closing with unreleased records.
* ``RecordNotEditableError`` -- adjusting or deleting a non-DRAFT record.
* ``InvalidTransitionError`` -- approve/release out of order.
* ``NotFoundError`` -- unknown period or record.
* Ledger errors from ``approve_payroll`` roll back the whole approval.

Audit relevance
---------------
Structured log events for every operation, carrying period, record and
employee ids plus gross/net amounts; each state change is also sent to the
audit sink.

Usage::

    service = PayrollService(
        session, directory, attendance, leave, clock=clock,
    )
    drafts = service.generate_payroll(period_id, actor_id=actor_id)
    service.approve_payroll(drafts[0].id, actor_id=actor_id)
    service.release_payroll(drafts[0].id, actor_id=actor_id)
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from payroll_config import get_schedule_registry
from payroll_engines.brackets import CutoffKind, OvertimeType, ScheduleRegistry, StatutorySchedule
from payroll_engines.pay import MINUTES_PER_HOUR, DerivedRates, RateBasis, derive_rates
from payroll_engines.payroll_calculator import PayrollInputs, compute_payroll
from payroll_kernel.domain.clock import Clock
from payroll_kernel.domain.money import ZERO, round_money, to_decimal
from payroll_kernel.exceptions import (
    NegativeAmountError,
    NotFoundError,
    PeriodClosedError,
    PeriodNotClosableError,
    PeriodOverlapError,
    RecordNotEditableError,
    ValidationError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.services.base import BaseService
from payroll_modules.advances.service import AdvanceService
from payroll_modules.payroll.collaborators import (
    AttendanceProvider,
    AuditSink,
    EmployeeDirectory,
    LeaveProvider,
    LoggingAuditSink,
    emit_audit,
)
from payroll_modules.payroll.models import (
    EmployeeRateConfig,
    PayPeriod,
    PayPeriodStatus,
    PayrollRecord,
    PayrollRecordStatus,
    Payslip,
)
from payroll_modules.payroll.orm import PayPeriodModel, PayrollRecordModel, PayslipModel
from payroll_modules.payroll.workflows import PAY_PERIOD_WORKFLOW, PAYROLL_RECORD_WORKFLOW

logger = get_logger("modules.payroll.service")

# Lines HR may edit on a DRAFT record.
ADJUSTABLE_FIELDS: tuple[str, ...] = (
    "holiday_pay",
    "allowances",
    "unpaid_leave_deduction",
    "other_deductions",
)


class PayrollService(BaseService):
    """
    Payroll record lifecycle for one database session.

    Contract:
        Collaborators are supplied by the caller.  ``actor_id`` is an
        already-authorized identity; this service makes no permission
        decisions.

    Guarantees:
        - Every public method either commits all of its changes or none.
        - Returned objects are frozen DTOs, never live ORM rows.
    """

    def __init__(
        self,
        session: Session,
        directory: EmployeeDirectory,
        attendance: AttendanceProvider,
        leave: LeaveProvider,
        clock: Clock | None = None,
        registry: ScheduleRegistry | None = None,
        audit: AuditSink | None = None,
        advances: AdvanceService | None = None,
    ):
        super().__init__(session, clock)
        self._directory = directory
        self._attendance = attendance
        self._leave = leave
        self._registry = registry or get_schedule_registry()
        self._audit_sink = audit or LoggingAuditSink()
        self._advances = advances or AdvanceService(session, self.clock, self._audit_sink)

    # =========================================================================
    # Pay periods
    # =========================================================================

    def create_period(
        self,
        name: str,
        start_date: date,
        end_date: date,
        cutoff_kind: CutoffKind,
        actor_id: UUID,
    ) -> PayPeriod:
        """Create an OPEN period.  Periods of the same kind may not overlap."""
        cutoff_kind = CutoffKind(cutoff_kind)
        if end_date < start_date:
            raise ValidationError("end_date", "end_date is before start_date")

        with self.transaction("pay_period"):
            overlapping = self.session.scalars(
                select(PayPeriodModel).where(
                    PayPeriodModel.cutoff_kind == cutoff_kind.value,
                    PayPeriodModel.start_date <= end_date,
                    PayPeriodModel.end_date >= start_date,
                )
            ).first()
            if overlapping is not None:
                raise PeriodOverlapError(name, overlapping.name, cutoff_kind.value)

            period = PayPeriodModel(
                name=name,
                start_date=start_date,
                end_date=end_date,
                cutoff_kind=cutoff_kind.value,
                status=PayPeriodStatus.OPEN.value,
                created_by_id=actor_id,
            )
            self.session.add(period)
            self.session.flush()

        logger.info("pay_period_created", extra={
            "period_id": str(period.id),
            "period_name": name,
            "cutoff_kind": cutoff_kind.value,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        })
        self._audit("pay_period_created", "PayPeriod", period.id, actor_id)
        return period.to_dto()

    def close_period(self, period_id: UUID, actor_id: UUID) -> PayPeriod:
        """PROCESSING -> CLOSED once every record in the period is RELEASED."""
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            with self.transaction("pay_period", period_id):
                period = self._load_period(period_id, lock=True)
                unreleased = self.session.scalar(
                    select(func.count(PayrollRecordModel.id)).where(
                        PayrollRecordModel.period_id == period_id,
                        PayrollRecordModel.status != PayrollRecordStatus.RELEASED.value,
                    )
                ) or 0
                if unreleased:
                    raise PeriodNotClosableError(str(period_id), unreleased)
                PAY_PERIOD_WORKFLOW.require_transition(
                    period_id, period.status, PayPeriodStatus.CLOSED,
                )
                period.status = PayPeriodStatus.CLOSED.value
                period.closed_at = self.clock.now()
                period.closed_by_id = actor_id
                period.updated_by_id = actor_id

            logger.info("pay_period_closed", extra={"period_name": period.name})
        self._audit("pay_period_closed", "PayPeriod", period.id, actor_id)
        return period.to_dto()

    def get_period(self, period_id: UUID) -> PayPeriod:
        return self._load_period(period_id).to_dto()

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_payroll(self, period_id: UUID, actor_id: UUID) -> list[PayrollRecord]:
        """
        Build or rebuild the DRAFT record of every eligible employee.

        Employees that are not active/probationary, or that have neither a
        daily nor a monthly rate, are skipped.  A DRAFT left over from an
        earlier run for an employee who is skipped or no longer listed is
        deleted.  Records already APPROVED or RELEASED are left untouched and
        not returned.

        Raises:
            PeriodClosedError: The period is CLOSED.
        """
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            with self.transaction("payroll_record", period_id):
                period = self._load_period(period_id, lock=True)
                if period.status == PayPeriodStatus.CLOSED.value:
                    raise PeriodClosedError(str(period_id))
                if period.status == PayPeriodStatus.OPEN.value:
                    PAY_PERIOD_WORKFLOW.require_transition(
                        period_id, period.status, PayPeriodStatus.PROCESSING,
                    )
                    period.status = PayPeriodStatus.PROCESSING.value
                    period.updated_by_id = actor_id

                period_dto = period.to_dto()
                schedule = self._registry.for_date(period.end_date)
                existing = {
                    r.employee_id: r
                    for r in self.session.scalars(
                        select(PayrollRecordModel).where(
                            PayrollRecordModel.period_id == period_id,
                        )
                    )
                }

                logger.info("payroll_generation_started", extra={
                    "period_name": period.name,
                    "schedule_version": schedule.version,
                    "existing_records": len(existing),
                })

                generated: list[PayrollRecordModel] = []
                skipped = 0
                for employee in self._directory.employees_for(period_dto):
                    record = self._generate_one(
                        employee, period_dto, schedule, existing.get(employee.employee_id),
                        actor_id,
                    )
                    if record is None:
                        skipped += 1
                        continue
                    generated.append(record)

                regenerated = {r.employee_id for r in generated}
                stale = [
                    r for r in existing.values()
                    if r.is_draft and r.employee_id not in regenerated
                ]
                for record in stale:
                    logger.info("payroll_draft_discarded", extra={
                        "employee_id": str(record.employee_id),
                        "record_id": str(record.id),
                        "net_pay": str(record.net_pay),
                    })
                    self.session.delete(record)
                self.session.flush()

            logger.info("payroll_generation_completed", extra={
                "generated": len(generated),
                "skipped": skipped,
                "discarded": len(stale),
                "total_gross": str(sum((r.gross_pay for r in generated), ZERO)),
                "total_net": str(sum((r.net_pay for r in generated), ZERO)),
            })
        self._audit(
            "payroll_generated", "PayPeriod", period_id, actor_id,
            {"generated": len(generated), "skipped": skipped, "discarded": len(stale)},
        )
        return [r.to_dto() for r in generated]

    def _generate_one(
        self,
        employee: EmployeeRateConfig,
        period: PayPeriod,
        schedule: StatutorySchedule,
        record: PayrollRecordModel | None,
        actor_id: UUID,
    ) -> PayrollRecordModel | None:
        employee_id = employee.employee_id
        if not employee.employment_status.is_payroll_eligible:
            logger.info("payroll_employee_skipped", extra={
                "employee_id": str(employee_id),
                "reason": f"status {employee.employment_status.value}",
            })
            return None
        if not employee.has_rate:
            logger.warning("payroll_employee_skipped", extra={
                "employee_id": str(employee_id),
                "reason": "no daily or monthly rate",
            })
            return None
        if record is not None and not record.is_draft:
            logger.info("payroll_record_locked_skipped", extra={
                "employee_id": str(employee_id),
                "record_id": str(record.id),
                "status": record.status,
            })
            return None

        attendance = self._attendance.aggregate_for(employee_id, period)
        leave = self._leave.aggregate_for(employee_id, period)
        rates = derive_rates(
            employee.effective_basis(),
            schedule.pay_rules,
            daily_rate=employee.daily_rate,
            monthly_rate=employee.monthly_rate,
        )
        plan = self._advances.plan_for_employee(employee_id)
        cash_advance = round_money(sum((amount for _, amount in plan), ZERO))

        adjustments: dict[str, Decimal] = {}
        if record is not None:
            adjustments = {name: getattr(record, name) or ZERO for name in ADJUSTABLE_FIELDS}

        inputs = PayrollInputs(
            rates=rates,
            days_worked=to_decimal(attendance.days_worked),
            unpaid_leave_days=to_decimal(leave.unpaid_leave_days),
            overtime_minutes=dict(attendance.overtime_minutes_by_type),
            late_minutes=attendance.deductible_late_minutes,
            cash_advance_deduction=cash_advance,
            **adjustments,
        )
        computation = compute_payroll(
            inputs=inputs, schedule=schedule, cutoff_kind=period.cutoff_kind,
        )

        if record is None:
            record = PayrollRecordModel(
                employee_id=employee_id,
                period_id=period.id,
                status=PayrollRecordStatus.DRAFT.value,
                created_by_id=actor_id,
            )
            self.session.add(record)
            event = "payroll_record_created"
        else:
            record.updated_by_id = actor_id
            event = "payroll_record_regenerated"

        record.rate_basis = rates.rate_basis.value
        record.days_worked = inputs.days_worked
        record.unpaid_leave_days = inputs.unpaid_leave_days
        record.ot_ordinary_minutes = attendance.minutes_for(OvertimeType.ORDINARY)
        record.ot_rest_day_minutes = attendance.minutes_for(OvertimeType.REST_DAY)
        record.ot_holiday_minutes = attendance.minutes_for(OvertimeType.HOLIDAY)
        record.late_minutes = attendance.deductible_late_minutes
        record.advance_plan = [
            {"advance_id": str(advance_id), "amount": str(amount)}
            for advance_id, amount in plan
        ]
        record.apply_computation(computation)

        logger.info(event, extra={
            "employee_id": str(employee_id),
            "rate_basis": rates.rate_basis.value,
            "gross_pay": str(computation.gross_pay),
            "total_deductions": str(computation.total_deductions),
            "net_pay": str(computation.net_pay),
            "cash_advance_deduction": str(cash_advance),
        })
        if computation.net_pay < 0:
            logger.warning("payroll_negative_net_pay", extra={
                "employee_id": str(employee_id),
                "net_pay": str(computation.net_pay),
            })
        return record

    # =========================================================================
    # DRAFT editing
    # =========================================================================

    def adjust_draft_record(
        self,
        record_id: UUID,
        actor_id: UUID,
        *,
        holiday_pay: Decimal | None = None,
        allowances: Decimal | None = None,
        unpaid_leave_deduction: Decimal | None = None,
        other_deductions: Decimal | None = None,
        notes: str | None = None,
    ) -> PayrollRecord:
        """
        Edit the manual lines of a DRAFT record and recompute it.

        The record is recomputed against its own rate snapshot and schedule
        version, so tax follows any change to gross pay.

        Raises:
            RecordNotEditableError: The record is not DRAFT.
            NegativeAmountError: Any supplied amount is negative.
        """
        changes = {
            name: value
            for name, value in (
                ("holiday_pay", holiday_pay),
                ("allowances", allowances),
                ("unpaid_leave_deduction", unpaid_leave_deduction),
                ("other_deductions", other_deductions),
            )
            if value is not None
        }
        for name, value in changes.items():
            if to_decimal(value) < 0:
                raise NegativeAmountError(name, value)

        with LogContext.bind(record_id=record_id, actor_id=actor_id):
            with self.transaction("payroll_record", record_id):
                record = self._load_record(record_id, lock=True)
                if not record.is_draft:
                    raise RecordNotEditableError(str(record_id), record.status)

                lines = {name: getattr(record, name) or ZERO for name in ADJUSTABLE_FIELDS}
                lines.update({k: round_money(v) for k, v in changes.items()})
                computation = compute_payroll(
                    inputs=PayrollInputs(
                        rates=_snapshot_rates(record),
                        days_worked=record.days_worked,
                        unpaid_leave_days=record.unpaid_leave_days,
                        overtime_minutes=record.overtime_minutes(),
                        late_minutes=record.late_minutes,
                        cash_advance_deduction=record.cash_advance_deduction,
                        **lines,
                    ),
                    schedule=self._registry.by_version(record.schedule_version),
                    cutoff_kind=CutoffKind(record.period.cutoff_kind),
                )
                record.apply_computation(computation)
                if notes is not None:
                    record.computation_notes = notes
                record.updated_by_id = actor_id

            logger.info("payroll_record_adjusted", extra={
                "employee_id": str(record.employee_id),
                "changed_fields": sorted(changes),
                "gross_pay": str(record.gross_pay),
                "net_pay": str(record.net_pay),
            })
        self._audit(
            "payroll_record_adjusted", "PayrollRecord", record.id, actor_id,
            {k: str(v) for k, v in changes.items()},
        )
        return record.to_dto()

    def delete_draft_record(self, record_id: UUID, actor_id: UUID) -> None:
        """Remove a DRAFT record.  Non-DRAFT records are never deleted."""
        with LogContext.bind(record_id=record_id, actor_id=actor_id):
            with self.transaction("payroll_record", record_id):
                record = self._load_record(record_id, lock=True)
                if not record.is_draft:
                    raise RecordNotEditableError(str(record_id), record.status)
                employee_id = record.employee_id
                self.session.delete(record)

            logger.info("payroll_record_deleted", extra={"employee_id": str(employee_id)})
        self._audit("payroll_record_deleted", "PayrollRecord", record_id, actor_id)

    # =========================================================================
    # Approval and release
    # =========================================================================

    def approve_payroll(self, record_id: UUID, actor_id: UUID) -> PayrollRecord:
        """
        DRAFT -> APPROVED, committing every planned advance deduction.

        The record row and its advances are locked for the duration.  If the
        ledger applies less than planned (another period already repaid part
        of an advance) the cash advance line and totals are reconciled to
        the applied amount.
        """
        with LogContext.bind(record_id=record_id, actor_id=actor_id):
            with self.transaction("payroll_record", record_id):
                record = self._load_record(record_id, lock=True)
                PAYROLL_RECORD_WORKFLOW.require_transition(
                    record_id, record.status, PayrollRecordStatus.APPROVED,
                )

                planned = record.planned_advances()
                results = self._advances.apply_planned(
                    [advance_id for advance_id, _ in planned],
                    record.id,
                    self.clock.today(),
                    actor_id,
                )
                applied = [
                    {"advance_id": str(r.deduction.advance_id), "amount": str(r.amount)}
                    for r in results if r.deduction is not None
                ]
                applied_total = round_money(sum((r.amount for r in results), ZERO))

                if applied_total != round_money(record.cash_advance_deduction):
                    logger.warning("advance_deduction_reconciled", extra={
                        "planned": str(record.cash_advance_deduction),
                        "applied": str(applied_total),
                    })
                    record.cash_advance_deduction = applied_total
                    record.recompute_totals()
                record.advance_plan = applied

                record.status = PayrollRecordStatus.APPROVED.value
                record.approved_by_id = actor_id
                record.approved_at = self.clock.now()
                record.updated_by_id = actor_id

            logger.info("payroll_record_approved", extra={
                "employee_id": str(record.employee_id),
                "net_pay": str(record.net_pay),
                "advances_applied": len(applied),
                "advances_completed": sum(1 for r in results if r.completed),
            })
        self._audit(
            "payroll_record_approved", "PayrollRecord", record.id, actor_id,
            {"cash_advance_deduction": str(record.cash_advance_deduction)},
        )
        return record.to_dto()

    def release_payroll(self, record_id: UUID, actor_id: UUID) -> PayrollRecord:
        """APPROVED -> RELEASED and issue the immutable payslip snapshot."""
        with LogContext.bind(record_id=record_id, actor_id=actor_id):
            with self.transaction("payroll_record", record_id):
                record = self._load_record(record_id, lock=True)
                PAYROLL_RECORD_WORKFLOW.require_transition(
                    record_id, record.status, PayrollRecordStatus.RELEASED,
                )
                now = self.clock.now()
                record.status = PayrollRecordStatus.RELEASED.value
                record.released_by_id = actor_id
                record.released_at = now
                record.updated_by_id = actor_id
                self.session.flush()

                payslip = PayslipModel(
                    payroll_record_id=record.id,
                    employee_id=record.employee_id,
                    period_id=record.period_id,
                    issued_at=now,
                    snapshot=payslip_snapshot(record.to_dto()),
                    created_by_id=actor_id,
                )
                self.session.add(payslip)
                self.session.flush()

            logger.info("payroll_record_released", extra={
                "employee_id": str(record.employee_id),
                "payslip_id": str(payslip.id),
                "net_pay": str(record.net_pay),
            })
        self._audit(
            "payroll_record_released", "PayrollRecord", record.id, actor_id,
            {"payslip_id": str(payslip.id)},
        )
        return record.to_dto()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_record(self, record_id: UUID) -> PayrollRecord:
        return self._load_record(record_id).to_dto()

    def get_payslip(self, record_id: UUID) -> Payslip:
        payslip = self.session.scalars(
            select(PayslipModel).where(PayslipModel.payroll_record_id == record_id)
        ).one_or_none()
        if payslip is None:
            raise NotFoundError("Payslip", str(record_id))
        return payslip.to_dto()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_period(self, period_id: UUID, lock: bool = False) -> PayPeriodModel:
        stmt = select(PayPeriodModel).where(PayPeriodModel.id == period_id)
        if lock:
            stmt = stmt.with_for_update()
        period = self.session.scalars(stmt).one_or_none()
        if period is None:
            raise NotFoundError("PayPeriod", str(period_id))
        return period

    def _load_record(self, record_id: UUID, lock: bool = False) -> PayrollRecordModel:
        stmt = select(PayrollRecordModel).where(PayrollRecordModel.id == record_id)
        if lock:
            stmt = stmt.with_for_update()
        record = self.session.scalars(stmt).one_or_none()
        if record is None:
            raise NotFoundError("PayrollRecord", str(record_id))
        return record

    def _audit(self, action, entity_type, entity_id, actor_id, details=None) -> None:
        emit_audit(self._audit_sink, action, entity_type, entity_id, actor_id, details)


def _snapshot_rates(record: PayrollRecordModel) -> DerivedRates:
    hourly = round_money(record.hourly_rate)
    return DerivedRates(
        rate_basis=RateBasis(record.rate_basis),
        daily_rate=round_money(record.daily_rate),
        hourly_rate=hourly,
        minute_rate=round_money(hourly / MINUTES_PER_HOUR),
        monthly_salary=round_money(record.monthly_salary),
    )


def payslip_snapshot(record: PayrollRecord) -> dict[str, Any]:
    """JSON-safe copy of a payroll record for the payslip."""
    snapshot: dict[str, Any] = {}
    for name, value in vars(record).items():
        if isinstance(value, Decimal):
            snapshot[name] = str(round_money(value))
        elif isinstance(value, Enum):
            snapshot[name] = value.value
        elif isinstance(value, UUID):
            snapshot[name] = str(value)
        elif isinstance(value, datetime):
            snapshot[name] = value.isoformat()
        else:
            snapshot[name] = value
    snapshot["overtime_minutes"] = {
        ot_type.value: minutes for ot_type, minutes in record.overtime_minutes.items()
    }
    snapshot["advance_plan"] = [
        {"advance_id": str(p.advance_id), "amount": str(p.amount)}
        for p in record.advance_plan
    ]
    return snapshot
