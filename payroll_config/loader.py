"""
Schedule Loader (``payroll_config.loader``).

Responsibility
--------------
Loads statutory schedule YAML files and parses them into the frozen
``payroll_engines.brackets`` dataclasses.  The public runtime entry point
is ``payroll_config.get_schedule_registry()``; this module is the parsing
layer underneath it (also used by ``ScheduleService`` to re-hydrate
persisted schedule payloads).

Architecture position
---------------------
**Config layer** -- depends on ``payroll_engines.brackets`` for the target
types.  No dependency on modules or the database.

Invariants enforced
-------------------
* Every amount is parsed as an exact ``Decimal``; a value that cannot be
  parsed raises ``ScheduleValidationError`` naming the field.
* Structural validation (contiguity, continuity) happens in the bracket
  dataclasses at construction, so a malformed YAML never yields a schedule.
* ``compute_checksum`` is a deterministic SHA-256 over canonical JSON.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``ScheduleValidationError``.

Audit relevance
---------------
The checksum and version of the schedule used for a payroll record are
stored on the record, tying every deduction to the exact table in force.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_engines.brackets import (
    HealthInsuranceSchedule,
    HousingFundSchedule,
    OvertimeType,
    PayRules,
    SalaryCreditBracket,
    SocialInsuranceSchedule,
    StatutorySchedule,
    TaxBracket,
    WithholdingTaxSchedule,
)
from payroll_kernel.exceptions import ScheduleValidationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def _dec(value: Any, field: str, version: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ScheduleValidationError(version, f"{field} is required")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ScheduleValidationError(version, f"{field} is not a number: {value!r}") from exc


def _section(data: dict[str, Any], key: str, version: str) -> dict[str, Any]:
    section = data.get(key)
    if not isinstance(section, dict):
        raise ScheduleValidationError(version, f"missing section '{key}'")
    return section


def parse_pay_rules(data: dict[str, Any], version: str) -> PayRules:
    multipliers = data.get("overtime_multipliers") or {}
    return PayRules(
        working_days_per_month=_dec(
            data.get("working_days_per_month"), "working_days_per_month", version,
        ),
        hours_per_day=_dec(data.get("hours_per_day"), "hours_per_day", version),
        overtime_multipliers={
            OvertimeType(name): _dec(value, f"overtime_multipliers.{name}", version)
            for name, value in multipliers.items()
        },
        version=version,
    )


def parse_social_insurance(data: dict[str, Any], version: str) -> SocialInsuranceSchedule:
    rows = data.get("brackets") or []
    brackets = []
    for i, row in enumerate(rows):
        if not isinstance(row, (list, tuple)) or len(row) != 3:
            raise ScheduleValidationError(
                version, f"social_insurance.brackets[{i}] must be [lower, upper, credit]",
            )
        lower, upper, credit = row
        brackets.append(
            SalaryCreditBracket(
                lower=_dec(lower, f"brackets[{i}].lower", version),
                upper=None if upper is None else _dec(upper, f"brackets[{i}].upper", version),
                salary_credit=_dec(credit, f"brackets[{i}].credit", version),
            )
        )
    return SocialInsuranceSchedule(
        brackets=tuple(brackets),
        employee_rate=_dec(data.get("employee_rate"), "employee_rate", version),
        monthly_ceiling=_dec(data.get("monthly_ceiling"), "monthly_ceiling", version),
        version=version,
    )


def parse_health_insurance(data: dict[str, Any], version: str) -> HealthInsuranceSchedule:
    return HealthInsuranceSchedule(
        premium_rate=_dec(data.get("premium_rate"), "premium_rate", version),
        employee_share=_dec(data.get("employee_share"), "employee_share", version),
        salary_floor=_dec(data.get("salary_floor"), "salary_floor", version),
        salary_ceiling=_dec(data.get("salary_ceiling"), "salary_ceiling", version),
        monthly_ceiling=_dec(data.get("monthly_ceiling"), "monthly_ceiling", version),
        version=version,
    )


def parse_housing_fund(data: dict[str, Any], version: str) -> HousingFundSchedule:
    return HousingFundSchedule(
        threshold=_dec(data.get("threshold"), "threshold", version),
        rate_low=_dec(data.get("rate_low"), "rate_low", version),
        rate_high=_dec(data.get("rate_high"), "rate_high", version),
        max_salary_credit=_dec(data.get("max_salary_credit"), "max_salary_credit", version),
        monthly_ceiling=_dec(data.get("monthly_ceiling"), "monthly_ceiling", version),
        version=version,
    )


def parse_withholding_tax(data: dict[str, Any], version: str) -> WithholdingTaxSchedule:
    brackets = tuple(
        TaxBracket(
            lower=_dec(row.get("lower"), f"tax[{i}].lower", version),
            base_tax=_dec(row.get("base_tax"), f"tax[{i}].base_tax", version),
            rate=_dec(row.get("rate"), f"tax[{i}].rate", version),
        )
        for i, row in enumerate(data.get("brackets") or [])
    )
    return WithholdingTaxSchedule(brackets=brackets, version=version)


def parse_schedule(data: dict[str, Any], checksum: str | None = None) -> StatutorySchedule:
    """
    Parse a full ``StatutorySchedule`` from a dict.

    Postconditions:
        Returns a frozen schedule whose ``checksum`` is that of ``data``
        unless an explicit checksum is supplied.
    Raises:
        ScheduleValidationError: on missing sections or invalid tables.
    """
    version = str(data.get("version") or "")
    if not version:
        raise ScheduleValidationError("<unversioned>", "version is required")
    if "effective_date" not in data:
        raise ScheduleValidationError(version, "effective_date is required")

    return StatutorySchedule(
        version=version,
        effective_date=parse_date(data["effective_date"]),
        social_insurance=parse_social_insurance(
            _section(data, "social_insurance", version), version,
        ),
        health_insurance=parse_health_insurance(
            _section(data, "health_insurance", version), version,
        ),
        housing_fund=parse_housing_fund(_section(data, "housing_fund", version), version),
        withholding_tax=parse_withholding_tax(
            _section(data, "withholding_tax", version), version,
        ),
        pay_rules=parse_pay_rules(_section(data, "pay_rules", version), version),
        checksum=checksum or compute_checksum(data),
    )


def load_schedule_file(path: Path) -> StatutorySchedule:
    return parse_schedule(load_yaml_file(path))


def load_schedule_directory(directory: Path) -> list[StatutorySchedule]:
    """Parse every ``*.yaml`` file in ``directory`` (sorted by file name)."""
    if not directory.is_dir():
        raise FileNotFoundError(f"Schedule directory not found: {directory}")
    return [load_schedule_file(p) for p in sorted(directory.glob("*.yaml"))]


def to_jsonable(data: Any) -> Any:
    """Convert YAML-native values (dates) into JSON-safe equivalents."""
    if isinstance(data, dict):
        return {str(k): to_jsonable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(v) for v in data]
    if isinstance(data, date):
        return data.isoformat()
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of canonical JSON; identical data gives identical checksums."""
    canonical = json.dumps(to_jsonable(data), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
