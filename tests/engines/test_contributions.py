"""
Tests for the statutory contribution calculators.

Covers:
- SSS salary-credit lookup, bracket boundaries and the per-cutoff ceiling
- PhilHealth floor/ceiling clamping and the 1,250 per-cutoff cap
- Pag-IBIG tiered rate and both ceilings
- Semi-monthly versus monthly cutoffs
- Malformed input
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from payroll_engines.brackets import CutoffKind
from payroll_engines.contributions import (
    compute_contributions,
    pagibig_employee_share,
    philhealth_employee_share,
    sss_employee_share,
)
from payroll_kernel.exceptions import NegativeAmountError


class TestSocialInsurance:
    """SSS employee share."""

    def test_salary_35000_hits_semi_monthly_ceiling(self, schedule):
        share = sss_employee_share(Decimal("35000"), schedule.social_insurance)
        assert share == Decimal("675.00")

    def test_salary_35000_monthly_cutoff(self, schedule):
        share = sss_employee_share(
            Decimal("35000"), schedule.social_insurance, CutoffKind.MONTHLY,
        )
        assert share == Decimal("1350.00")

    def test_mid_table_salary(self, schedule):
        # Credit 20,000 x 4.5% = 900 per month
        assert sss_employee_share(Decimal("20000"), schedule.social_insurance) == Decimal("450.00")

    def test_below_first_bracket_uses_first_credit(self, schedule):
        # Credit 4,000 x 4.5% = 180 per month
        assert sss_employee_share(Decimal("3000"), schedule.social_insurance) == Decimal("90.00")

    def test_upper_bound_is_inclusive(self, schedule):
        table = schedule.social_insurance
        assert table.salary_credit(Decimal("4249.99")) == Decimal("4000.00")
        assert table.salary_credit(Decimal("4250.00")) == Decimal("4500.00")
        assert sss_employee_share(Decimal("4250.00"), table) == Decimal("101.25")

    def test_open_ended_top_bracket(self, schedule):
        assert schedule.social_insurance.salary_credit(Decimal("250000")) == Decimal("32000.00")

    def test_zero_salary_is_zero(self, schedule):
        assert sss_employee_share(Decimal("0"), schedule.social_insurance) == Decimal("0.00")

    def test_negative_salary_rejected(self, schedule):
        with pytest.raises(NegativeAmountError):
            sss_employee_share(Decimal("-1"), schedule.social_insurance)


class TestHealthInsurance:
    """PhilHealth employee share."""

    def test_salary_35000(self, schedule):
        # 35,000 x 5% = 1,750 premium; employee half = 875; per cutoff 437.50
        assert philhealth_employee_share(
            Decimal("35000"), schedule.health_insurance,
        ) == Decimal("437.50")

    def test_salary_floor(self, schedule):
        assert philhealth_employee_share(
            Decimal("5000"), schedule.health_insurance,
        ) == Decimal("125.00")

    @pytest.mark.parametrize("salary", ["100000", "150000", "1000000"])
    def test_salary_ceiling_caps_at_1250(self, schedule, salary):
        assert philhealth_employee_share(
            Decimal(salary), schedule.health_insurance,
        ) == Decimal("1250.00")

    def test_monthly_cutoff(self, schedule):
        assert philhealth_employee_share(
            Decimal("35000"), schedule.health_insurance, CutoffKind.MONTHLY,
        ) == Decimal("875.00")


class TestHousingFund:
    """Pag-IBIG employee share."""

    def test_low_rate_at_threshold(self, schedule):
        # 1,500 x 1% = 15 per month
        assert pagibig_employee_share(
            Decimal("1500"), schedule.housing_fund,
        ) == Decimal("7.50")

    def test_high_rate_above_threshold_is_capped(self, schedule):
        # min(35,000, 5,000) x 2% = 100 per month
        assert pagibig_employee_share(
            Decimal("35000"), schedule.housing_fund,
        ) == Decimal("50.00")

    def test_monthly_cutoff(self, schedule):
        assert pagibig_employee_share(
            Decimal("35000"), schedule.housing_fund, CutoffKind.MONTHLY,
        ) == Decimal("100.00")

    def test_semi_monthly_ceiling_is_half_of_200(self, schedule):
        assert schedule.housing_fund.per_cutoff_ceiling(CutoffKind.SEMI_MONTHLY) == Decimal("100.00")
        assert schedule.housing_fund.per_cutoff_ceiling(CutoffKind.MONTHLY) == Decimal("200.00")

    def test_ceiling_binds_when_salary_credit_rises(self, schedule):
        # min(35,000, 20,000) x 2% = 400, capped at 200 per month
        raised = replace(schedule.housing_fund, max_salary_credit=Decimal("20000.00"))
        assert pagibig_employee_share(Decimal("35000"), raised) == Decimal("100.00")
        assert pagibig_employee_share(
            Decimal("35000"), raised, CutoffKind.MONTHLY,
        ) == Decimal("200.00")
        # 7,500 x 2% = 150 per month, under the ceiling
        assert pagibig_employee_share(Decimal("7500"), raised) == Decimal("75.00")


class TestComputeContributions:

    def test_breakdown_total(self, schedule):
        shares = compute_contributions(Decimal("35000"), schedule)
        assert shares.sss == Decimal("675.00")
        assert shares.philhealth == Decimal("437.50")
        assert shares.pagibig == Decimal("50.00")
        assert shares.total == Decimal("1162.50")

    def test_accepts_string_salary(self, schedule):
        assert compute_contributions("35000", schedule) == compute_contributions(
            Decimal("35000"), schedule,
        )

    def test_float_salary_refused(self, schedule):
        with pytest.raises(TypeError):
            compute_contributions(35000.0, schedule)
