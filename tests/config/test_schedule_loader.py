"""
Tests for statutory schedule loading and validation.

Covers:
- The bundled PH-2024.1 schedule
- Structural validation of bracket tables and pay rules
- Checksums
- Effective-dated registry lookup and the process-wide cache
- Environment settings
"""

import copy
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from payroll_config import (
    DEFAULT_SCHEDULE_DIR,
    PayrollSettings,
    clear_schedule_cache,
    get_schedule_registry,
)
from payroll_config.loader import (
    compute_checksum,
    load_schedule_directory,
    load_yaml_file,
    parse_schedule,
    to_jsonable,
)
from payroll_engines.brackets import OvertimeType, ScheduleRegistry
from payroll_kernel.exceptions import ScheduleNotFoundError, ScheduleValidationError


@pytest.fixture(scope="module")
def raw_schedule():
    return load_yaml_file(DEFAULT_SCHEDULE_DIR / "ph_2024.yaml")


@pytest.fixture
def data(raw_schedule):
    return copy.deepcopy(raw_schedule)


class TestBundledSchedule:

    def test_parses(self, data):
        schedule = parse_schedule(data)
        assert schedule.version == "PH-2024.1"
        assert schedule.effective_date == date(2024, 1, 1)
        assert len(schedule.social_insurance.brackets) == 57
        assert len(schedule.withholding_tax.brackets) == 6
        assert schedule.pay_rules.multiplier(OvertimeType.REST_DAY) == Decimal("1.30")

    def test_sss_table_is_contiguous_and_open_ended(self, data):
        brackets = parse_schedule(data).social_insurance.brackets
        assert brackets[0].upper is not None
        assert brackets[-1].upper is None
        assert brackets[-1].salary_credit == 32000


class TestValidation:

    def test_sss_gap(self, data):
        data["social_insurance"]["brackets"][1][0] = "4300.00"
        with pytest.raises(ScheduleValidationError, match="gap or overlap"):
            parse_schedule(data)

    def test_sss_open_bracket_not_last(self, data):
        data["social_insurance"]["brackets"][0][1] = None
        with pytest.raises(ScheduleValidationError):
            parse_schedule(data)

    def test_malformed_sss_row(self, data):
        data["social_insurance"]["brackets"][3] = ["5250.00", "5749.99"]
        with pytest.raises(ScheduleValidationError):
            parse_schedule(data)

    def test_tax_table_must_start_at_zero(self, data):
        data["withholding_tax"]["brackets"].pop(0)
        with pytest.raises(ScheduleValidationError, match="start at 0"):
            parse_schedule(data)

    def test_tax_discontinuity(self, data):
        data["withholding_tax"]["brackets"][2]["base_tax"] = "22000"
        with pytest.raises(ScheduleValidationError, match="discontinuity"):
            parse_schedule(data)

    def test_working_days_must_be_positive(self, data):
        data["pay_rules"]["working_days_per_month"] = "0"
        with pytest.raises(ScheduleValidationError):
            parse_schedule(data)

    def test_missing_overtime_multiplier(self, data):
        del data["pay_rules"]["overtime_multipliers"]["holiday"]
        with pytest.raises(ScheduleValidationError, match="holiday"):
            parse_schedule(data)

    def test_non_numeric_rate(self, data):
        data["health_insurance"]["premium_rate"] = "five percent"
        with pytest.raises(ScheduleValidationError, match="not a number"):
            parse_schedule(data)

    @pytest.mark.parametrize("key", ["version", "effective_date", "housing_fund"])
    def test_missing_required_key(self, data, key):
        del data[key]
        with pytest.raises(ScheduleValidationError):
            parse_schedule(data)


class TestChecksum:

    def test_stable_across_date_representations(self, data):
        assert compute_checksum(data) == compute_checksum(to_jsonable(data))
        assert parse_schedule(data).checksum == compute_checksum(data)

    def test_changes_with_content(self, data):
        before = compute_checksum(data)
        data["housing_fund"]["monthly_ceiling"] = "300.00"
        assert compute_checksum(data) != before

    def test_explicit_checksum_kept(self, data):
        assert parse_schedule(data, checksum="abc").checksum == "abc"


class TestRegistry:

    def test_effective_dated_lookup(self, data):
        older = copy.deepcopy(data)
        older["version"] = "PH-2023.1"
        older["effective_date"] = date(2023, 1, 1)
        registry = ScheduleRegistry([parse_schedule(data), parse_schedule(older)])

        assert registry.for_date(date(2023, 6, 30)).version == "PH-2023.1"
        assert registry.for_date(date(2024, 1, 1)).version == "PH-2024.1"
        assert registry.latest().version == "PH-2024.1"
        assert registry.by_version("PH-2023.1").effective_date == date(2023, 1, 1)
        with pytest.raises(ScheduleNotFoundError):
            registry.for_date(date(2022, 12, 31))
        with pytest.raises(ScheduleNotFoundError):
            registry.by_version("PH-1999.1")

    def test_duplicate_effective_date_rejected(self, data):
        other = copy.deepcopy(data)
        other["version"] = "PH-2024.2"
        with pytest.raises(ScheduleValidationError):
            ScheduleRegistry([parse_schedule(data), parse_schedule(other)])

    def test_empty_registry(self):
        with pytest.raises(ScheduleNotFoundError):
            ScheduleRegistry([]).latest()


class TestScheduleDirectory:

    def test_loads_every_yaml_file(self, data, tmp_path):
        older = copy.deepcopy(data)
        older["version"] = "PH-2023.1"
        older["effective_date"] = "2023-01-01"
        (tmp_path / "a_2023.yaml").write_text(yaml.safe_dump(older))
        (tmp_path / "b_2024.yaml").write_text(yaml.safe_dump(data))
        (tmp_path / "notes.txt").write_text("ignored")

        versions = [s.version for s in load_schedule_directory(tmp_path)]
        assert versions == ["PH-2023.1", "PH-2024.1"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_schedule_directory(tmp_path / "missing")

    def test_registry_is_cached_per_directory(self, data, tmp_path, captured_logs):
        (tmp_path / "ph.yaml").write_text(yaml.safe_dump(data))
        clear_schedule_cache()
        first = get_schedule_registry(tmp_path)
        assert get_schedule_registry(tmp_path) is first

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["schedule_version"] == "PH-2024.1"

        clear_schedule_cache()
        assert get_schedule_registry(tmp_path) is not first


class TestSettings:

    def test_defaults(self):
        settings = PayrollSettings.from_env({})
        assert settings.database_url == "sqlite:///payroll.db"
        assert settings.log_level == "INFO"
        assert settings.schedule_dir == DEFAULT_SCHEDULE_DIR

    def test_from_environment(self):
        settings = PayrollSettings.from_env({
            "PAYROLL_DATABASE_URL": "postgresql://payroll@db/payroll",
            "PAYROLL_LOG_LEVEL": "debug",
            "PAYROLL_SCHEDULE_DIR": "/etc/payroll/schedules",
        })
        assert settings.database_url == "postgresql://payroll@db/payroll"
        assert settings.log_level == "DEBUG"
        assert settings.schedule_dir == Path("/etc/payroll/schedules")
