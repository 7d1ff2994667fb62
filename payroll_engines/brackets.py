"""
Bracket Tables - versioned statutory schedules.

Immutable, in-memory representations of the social-insurance salary-credit
table, the health-insurance and housing-fund rate rules, the progressive
withholding-tax brackets and the pay constants, grouped into one
``StatutorySchedule`` per effective date.

Pure data with no I/O.  Schedules are built by ``payroll_config.loader``
from YAML and selected per payroll run through ``ScheduleRegistry.for_date``.

Invariants enforced (at construction):
    - Salary-credit brackets are sorted and contiguous to the centavo
      (next.lower == previous.upper + 0.01); only the last is open-ended.
    - Tax brackets start at 0, have strictly increasing lower bounds, and
      are continuous: each base_tax equals the previous bracket's tax at
      its own lower bound.
    - Rates and ceilings are non-negative.

Usage:
    from payroll_engines.brackets import CutoffKind
    from payroll_config import get_schedule_registry

    schedule = get_schedule_registry().for_date(period.end_date)
    credit = schedule.social_insurance.salary_credit(Decimal("35000.00"))
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_kernel.domain.money import CENT, ZERO, round_money
from payroll_kernel.exceptions import ScheduleNotFoundError, ScheduleValidationError


class CutoffKind(str, Enum):
    """Length of a pay period."""

    SEMI_MONTHLY = "semi_monthly"
    MONTHLY = "monthly"

    @property
    def cutoffs_per_month(self) -> int:
        return 2 if self is CutoffKind.SEMI_MONTHLY else 1

    @property
    def cutoffs_per_year(self) -> int:
        return self.cutoffs_per_month * 12


class OvertimeType(str, Enum):
    """Recorded overtime category; each has its own multiplier."""

    ORDINARY = "ordinary"
    REST_DAY = "rest_day"
    HOLIDAY = "holiday"


def _per_cutoff(monthly_amount: Decimal, cutoff_kind: CutoffKind) -> Decimal:
    return round_money(monthly_amount / cutoff_kind.cutoffs_per_month)


@dataclass(frozen=True)
class SalaryCreditBracket:
    """One row of the social-insurance table: [lower, upper] -> salary credit."""

    lower: Decimal
    upper: Decimal | None  # None = no upper bound
    salary_credit: Decimal

    def contains(self, salary: Decimal) -> bool:
        if salary < self.lower:
            return False
        return self.upper is None or salary <= self.upper


@dataclass(frozen=True)
class SocialInsuranceSchedule:
    """SSS: salary-credit lookup, employee rate, monthly employee-share ceiling."""

    brackets: tuple[SalaryCreditBracket, ...]
    employee_rate: Decimal
    monthly_ceiling: Decimal
    version: str = ""
    _lowers: tuple[Decimal, ...] = field(
        init=False, repr=False, compare=False, hash=False,
    )

    def __post_init__(self) -> None:
        if not self.brackets:
            raise ScheduleValidationError(self.version, "social insurance table is empty")
        for prev, nxt in zip(self.brackets, self.brackets[1:]):
            if prev.upper is None:
                raise ScheduleValidationError(
                    self.version,
                    f"bracket starting at {prev.lower} is open-ended but not last",
                )
            if nxt.lower != prev.upper + CENT:
                raise ScheduleValidationError(
                    self.version,
                    f"gap or overlap between {prev.upper} and {nxt.lower}",
                )
            if nxt.salary_credit < prev.salary_credit:
                raise ScheduleValidationError(
                    self.version,
                    f"salary credit decreases at bracket {nxt.lower}",
                )
        if self.employee_rate < 0 or self.monthly_ceiling < 0:
            raise ScheduleValidationError(self.version, "negative SSS rate or ceiling")
        object.__setattr__(self, "_lowers", tuple(b.lower for b in self.brackets))

    def bracket_for(self, salary: Decimal) -> SalaryCreditBracket:
        """First bracket with lower <= salary <= upper.

        Below the first bracket the first is used; above the last closed
        bracket the highest is used.  Clamp, never error.
        """
        idx = bisect_right(self._lowers, salary) - 1
        if idx < 0:
            return self.brackets[0]
        bracket = self.brackets[idx]
        if bracket.contains(salary):
            return bracket
        return self.brackets[-1]

    def salary_credit(self, salary: Decimal) -> Decimal:
        return self.bracket_for(salary).salary_credit

    def per_cutoff_ceiling(self, cutoff_kind: CutoffKind) -> Decimal:
        return _per_cutoff(self.monthly_ceiling, cutoff_kind)


@dataclass(frozen=True)
class HealthInsuranceSchedule:
    """PhilHealth: premium on salary clamped to [floor, ceiling], split with employer."""

    premium_rate: Decimal
    employee_share: Decimal
    salary_floor: Decimal
    salary_ceiling: Decimal
    monthly_ceiling: Decimal
    version: str = ""

    def __post_init__(self) -> None:
        if self.salary_floor > self.salary_ceiling:
            raise ScheduleValidationError(
                self.version, "PhilHealth salary floor exceeds ceiling",
            )
        if not (ZERO <= self.employee_share <= Decimal("1")):
            raise ScheduleValidationError(
                self.version, "PhilHealth employee share must be within [0, 1]",
            )

    def per_cutoff_ceiling(self, cutoff_kind: CutoffKind) -> Decimal:
        return _per_cutoff(self.monthly_ceiling, cutoff_kind)


@dataclass(frozen=True)
class HousingFundSchedule:
    """Pag-IBIG: tiered rate by threshold, capped salary credit, monthly ceiling."""

    threshold: Decimal
    rate_low: Decimal
    rate_high: Decimal
    max_salary_credit: Decimal
    monthly_ceiling: Decimal
    version: str = ""

    def __post_init__(self) -> None:
        if self.rate_low < 0 or self.rate_high < 0:
            raise ScheduleValidationError(self.version, "negative Pag-IBIG rate")

    def rate_for(self, salary: Decimal) -> Decimal:
        return self.rate_low if salary <= self.threshold else self.rate_high

    def per_cutoff_ceiling(self, cutoff_kind: CutoffKind) -> Decimal:
        return _per_cutoff(self.monthly_ceiling, cutoff_kind)


@dataclass(frozen=True)
class TaxBracket:
    """Annual bracket: tax = base_tax + rate * (income - lower)."""

    lower: Decimal
    base_tax: Decimal
    rate: Decimal


@dataclass(frozen=True)
class WithholdingTaxSchedule:
    """Progressive annual brackets; the last has no upper bound."""

    brackets: tuple[TaxBracket, ...]
    version: str = ""
    _lowers: tuple[Decimal, ...] = field(
        init=False, repr=False, compare=False, hash=False,
    )

    def __post_init__(self) -> None:
        if not self.brackets:
            raise ScheduleValidationError(self.version, "tax table is empty")
        if self.brackets[0].lower != ZERO:
            raise ScheduleValidationError(self.version, "first tax bracket must start at 0")
        for prev, nxt in zip(self.brackets, self.brackets[1:]):
            if nxt.lower <= prev.lower:
                raise ScheduleValidationError(
                    self.version, f"tax bracket {nxt.lower} is out of order",
                )
            expected = round_money(prev.base_tax + prev.rate * (nxt.lower - prev.lower))
            if round_money(nxt.base_tax) != expected:
                raise ScheduleValidationError(
                    self.version,
                    f"tax discontinuity at {nxt.lower}: base {nxt.base_tax} != {expected}",
                )
        object.__setattr__(self, "_lowers", tuple(b.lower for b in self.brackets))

    def bracket_for(self, annual_income: Decimal) -> TaxBracket:
        """Highest bracket whose lower bound is <= annual income."""
        idx = bisect_right(self._lowers, annual_income) - 1
        return self.brackets[max(idx, 0)]


@dataclass(frozen=True)
class PayRules:
    """Unit-conversion constants and overtime multipliers."""

    working_days_per_month: Decimal
    hours_per_day: Decimal
    overtime_multipliers: dict[OvertimeType, Decimal]
    version: str = ""

    def __post_init__(self) -> None:
        if self.working_days_per_month <= 0:
            raise ScheduleValidationError(self.version, "working_days_per_month must be > 0")
        if self.hours_per_day <= 0:
            raise ScheduleValidationError(self.version, "hours_per_day must be > 0")
        missing = [t.value for t in OvertimeType if t not in self.overtime_multipliers]
        if missing:
            raise ScheduleValidationError(
                self.version, f"missing overtime multipliers: {', '.join(missing)}",
            )

    def multiplier(self, overtime_type: OvertimeType) -> Decimal:
        return self.overtime_multipliers[OvertimeType(overtime_type)]


@dataclass(frozen=True)
class StatutorySchedule:
    """Every table in force from ``effective_date`` until the next version."""

    version: str
    effective_date: date
    social_insurance: SocialInsuranceSchedule
    health_insurance: HealthInsuranceSchedule
    housing_fund: HousingFundSchedule
    withholding_tax: WithholdingTaxSchedule
    pay_rules: PayRules
    checksum: str = ""


class ScheduleRegistry:
    """
    Effective-dated lookup over loaded schedules.

    Contract:
        Built once from immutable schedules; never mutated afterward.
    Guarantees:
        ``for_date(d)`` returns the schedule with the latest effective date
        on or before ``d``.
    """

    def __init__(self, schedules: list[StatutorySchedule]):
        ordered = sorted(schedules, key=lambda s: s.effective_date)
        dates = [s.effective_date for s in ordered]
        if len(set(dates)) != len(dates):
            raise ScheduleValidationError(
                "registry", "two schedules share an effective date",
            )
        self._schedules: tuple[StatutorySchedule, ...] = tuple(ordered)
        self._dates: tuple[date, ...] = tuple(dates)

    def __len__(self) -> int:
        return len(self._schedules)

    @property
    def schedules(self) -> tuple[StatutorySchedule, ...]:
        return self._schedules

    def for_date(self, as_of: date) -> StatutorySchedule:
        idx = bisect_right(self._dates, as_of) - 1
        if idx < 0:
            raise ScheduleNotFoundError(as_of.isoformat())
        return self._schedules[idx]

    def by_version(self, version: str) -> StatutorySchedule:
        for schedule in self._schedules:
            if schedule.version == version:
                return schedule
        raise ScheduleNotFoundError(f"version {version}")

    def latest(self) -> StatutorySchedule:
        if not self._schedules:
            raise ScheduleNotFoundError("any date")
        return self._schedules[-1]
