"""
Tests for rate derivation, basic pay, overtime and lateness.
"""

from decimal import Decimal

import pytest

from payroll_engines.brackets import OvertimeType
from payroll_engines.pay import (
    RateBasis,
    basic_pay,
    derive_rates,
    late_deduction,
    overtime_breakdown,
    overtime_pay,
)
from payroll_kernel.exceptions import NegativeAmountError, ValidationError


class TestDeriveRates:

    def test_monthly_basis(self, schedule):
        rates = derive_rates(
            RateBasis.MONTHLY, schedule.pay_rules, monthly_rate=Decimal("35000"),
        )
        assert rates.daily_rate == Decimal("1590.91")
        assert rates.hourly_rate == Decimal("198.86")
        assert rates.minute_rate == Decimal("3.31")
        assert rates.monthly_salary == Decimal("35000.00")

    def test_daily_basis(self, schedule):
        rates = derive_rates(RateBasis.DAILY, schedule.pay_rules, daily_rate=Decimal("800"))
        assert rates.daily_rate == Decimal("800.00")
        assert rates.hourly_rate == Decimal("100.00")
        assert rates.minute_rate == Decimal("1.67")
        assert rates.monthly_salary == Decimal("17600.00")

    def test_missing_rate_for_basis(self, schedule):
        with pytest.raises(ValidationError):
            derive_rates(RateBasis.MONTHLY, schedule.pay_rules, daily_rate=Decimal("800"))

    def test_zero_rate_rejected(self, schedule):
        with pytest.raises(ValidationError):
            derive_rates(RateBasis.DAILY, schedule.pay_rules, daily_rate=Decimal("0"))


class TestBasicPay:

    def test_days_times_rate(self):
        assert basic_pay(Decimal("800.00"), Decimal("11")) == Decimal("8800.00")

    def test_unpaid_leave_reduces_days(self):
        assert basic_pay(Decimal("800.00"), Decimal("11"), Decimal("1")) == Decimal("8000.00")

    def test_half_days(self):
        assert basic_pay(Decimal("800.00"), Decimal("10.5")) == Decimal("8400.00")

    def test_never_negative(self):
        assert basic_pay(Decimal("800.00"), Decimal("1"), Decimal("3")) == Decimal("0.00")

    def test_negative_days_rejected(self):
        with pytest.raises(NegativeAmountError):
            basic_pay(Decimal("800.00"), Decimal("-1"))


class TestOvertime:

    def test_each_type_uses_its_multiplier(self, schedule):
        breakdown = overtime_breakdown(
            Decimal("100.00"),
            {OvertimeType.ORDINARY: 90, OvertimeType.REST_DAY: 60, OvertimeType.HOLIDAY: 30},
            schedule.pay_rules,
        )
        assert breakdown[OvertimeType.ORDINARY] == Decimal("187.50")
        assert breakdown[OvertimeType.REST_DAY] == Decimal("130.00")
        assert breakdown[OvertimeType.HOLIDAY] == Decimal("100.00")

    def test_total(self, schedule):
        assert overtime_pay(
            Decimal("100.00"),
            {"ordinary": 90, "rest_day": 60, "holiday": 30},
            schedule.pay_rules,
        ) == Decimal("417.50")

    def test_no_overtime(self, schedule):
        assert overtime_pay(Decimal("100.00"), {}, schedule.pay_rules) == Decimal("0.00")

    def test_unknown_type_rejected(self, schedule):
        with pytest.raises(ValueError):
            overtime_pay(Decimal("100.00"), {"night": 30}, schedule.pay_rules)

    def test_negative_minutes_rejected(self, schedule):
        with pytest.raises(NegativeAmountError):
            overtime_pay(Decimal("100.00"), {OvertimeType.ORDINARY: -5}, schedule.pay_rules)


class TestLateDeduction:

    def test_minute_rate_times_minutes(self):
        # 100.00 / 60 = 1.67 per minute
        assert late_deduction(Decimal("100.00"), 15) == Decimal("25.05")

    def test_no_lateness(self):
        assert late_deduction(Decimal("100.00"), 0) == Decimal("0.00")
