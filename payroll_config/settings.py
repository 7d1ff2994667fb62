"""
Runtime settings read from the environment.

    PAYROLL_DATABASE_URL   SQLAlchemy URL (default: sqlite:///payroll.db)
    PAYROLL_LOG_LEVEL      logging level name (default: INFO)
    PAYROLL_SCHEDULE_DIR   directory of schedule YAML files
                           (default: payroll_config/schedules)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SCHEDULE_DIR = Path(__file__).parent / "schedules"


@dataclass(frozen=True)
class PayrollSettings:
    database_url: str = "sqlite:///payroll.db"
    log_level: str = "INFO"
    schedule_dir: Path = DEFAULT_SCHEDULE_DIR

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PayrollSettings:
        env = os.environ if environ is None else environ
        schedule_dir = env.get("PAYROLL_SCHEDULE_DIR")
        return cls(
            database_url=env.get("PAYROLL_DATABASE_URL", cls.database_url),
            log_level=env.get("PAYROLL_LOG_LEVEL", cls.log_level).upper(),
            schedule_dir=Path(schedule_dir) if schedule_dir else DEFAULT_SCHEDULE_DIR,
        )
