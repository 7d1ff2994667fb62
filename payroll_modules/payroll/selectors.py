"""
Payroll read models.

``PayrollSelector`` answers the reporting questions HR asks about a pay
period: how many records, in which states, and what the period costs.
Read-only; the caller owns the session.
"""

from __future__ import annotations

from collections import Counter
from uuid import UUID

from sqlalchemy import select

from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.selectors.base import BaseSelector
from payroll_modules.payroll.models import (
    PayPeriodStatus,
    PayrollRecord,
    PayrollRecordStatus,
    PeriodSummary,
    RegisterLine,
)
from payroll_modules.payroll.orm import PayPeriodModel, PayrollRecordModel


class PayrollSelector(BaseSelector):
    """Period summaries and the payroll register."""

    def records_for_period(
        self,
        period_id: UUID,
        status: PayrollRecordStatus | None = None,
    ) -> list[PayrollRecord]:
        stmt = (
            select(PayrollRecordModel)
            .where(PayrollRecordModel.period_id == period_id)
            .order_by(PayrollRecordModel.employee_id)
        )
        if status is not None:
            stmt = stmt.where(PayrollRecordModel.status == PayrollRecordStatus(status).value)
        return [r.to_dto() for r in self.session.scalars(stmt)]

    def period_summary(self, period_id: UUID) -> PeriodSummary:
        """Record count, money totals and status breakdown for one period."""
        period = self._require(PayPeriodModel, period_id, "PayPeriod")

        records = list(self.session.scalars(
            select(PayrollRecordModel).where(PayrollRecordModel.period_id == period_id)
        ))
        gross = deductions = net = ZERO
        counts: Counter[PayrollRecordStatus] = Counter()
        for record in records:
            gross += record.gross_pay
            deductions += record.total_deductions
            net += record.net_pay
            counts[PayrollRecordStatus(record.status)] += 1

        return PeriodSummary(
            period_id=period.id,
            period_name=period.name,
            period_status=PayPeriodStatus(period.status),
            record_count=len(records),
            total_gross=round_money(gross),
            total_deductions=round_money(deductions),
            total_net=round_money(net),
            status_counts={s: counts.get(s, 0) for s in PayrollRecordStatus},
        )

    def register(self, period_id: UUID) -> list[RegisterLine]:
        """One line per record, ordered by employee."""
        self._require(PayPeriodModel, period_id, "PayPeriod")
        stmt = (
            select(PayrollRecordModel)
            .where(PayrollRecordModel.period_id == period_id)
            .order_by(PayrollRecordModel.employee_id)
        )
        return [
            RegisterLine(
                record_id=r.id,
                employee_id=r.employee_id,
                status=PayrollRecordStatus(r.status),
                basic_pay=round_money(r.basic_pay),
                overtime_pay=round_money(r.overtime_pay),
                gross_pay=round_money(r.gross_pay),
                sss_deduction=round_money(r.sss_deduction),
                philhealth_deduction=round_money(r.philhealth_deduction),
                pagibig_deduction=round_money(r.pagibig_deduction),
                withholding_tax=round_money(r.withholding_tax),
                cash_advance_deduction=round_money(r.cash_advance_deduction),
                late_deduction=round_money(r.late_deduction),
                total_deductions=round_money(r.total_deductions),
                net_pay=round_money(r.net_pay),
            )
            for r in self.session.scalars(stmt)
        ]
