"""
Statutory Schedule Service (``payroll_modules.schedules.service``).

Responsibility
--------------
Publish statutory schedules as versioned, dated database rows and resolve
the schedule in force on a given date, so payroll computed last year can be
recomputed against last year's tables.

Architecture position
---------------------
**Modules layer** -- persistence counterpart of ``payroll_config``.  Parsing
and validation are delegated to ``payroll_config.loader.parse_schedule``;
the stored payload is the raw document and is re-parsed on read.

Invariants enforced
-------------------
* A version is published once.  Re-publishing identical content is a no-op;
  different content under the same version is rejected.
* Only structurally valid schedules are stored.

Failure modes
-------------
* ``ScheduleValidationError`` -- invalid document or conflicting version.
* ``ScheduleNotFoundError`` -- no active schedule on or before a date.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any
from uuid import UUID

from sqlalchemy import select

from payroll_config.loader import load_yaml_file, parse_schedule, to_jsonable
from payroll_engines.brackets import ScheduleRegistry, StatutorySchedule
from payroll_kernel.exceptions import NotFoundError, ScheduleNotFoundError, ScheduleValidationError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.services.base import BaseService
from payroll_modules.schedules.orm import StatutoryScheduleModel

logger = get_logger("modules.schedules.service")


class ScheduleService(BaseService):
    """Versioned statutory schedules stored as dated rows."""

    def publish(self, data: dict[str, Any], actor_id: UUID) -> StatutorySchedule:
        payload = to_jsonable(data)
        schedule = parse_schedule(payload)

        with self.transaction("statutory_schedule", schedule.version):
            existing = self.session.scalars(
                select(StatutoryScheduleModel).where(
                    StatutoryScheduleModel.version == schedule.version,
                )
            ).one_or_none()
            if existing is not None:
                if existing.checksum != schedule.checksum:
                    raise ScheduleValidationError(
                        schedule.version,
                        "version already published with different content",
                    )
                logger.info("statutory_schedule_already_published", extra={
                    "schedule_version": schedule.version,
                    "checksum": schedule.checksum,
                })
                return schedule

            self.session.add(StatutoryScheduleModel(
                version=schedule.version,
                effective_date=schedule.effective_date,
                is_active=True,
                checksum=schedule.checksum,
                payload=payload,
                created_by_id=actor_id,
            ))

        logger.info("statutory_schedule_published", extra={
            "schedule_version": schedule.version,
            "effective_date": schedule.effective_date.isoformat(),
            "checksum": schedule.checksum,
        })
        return schedule

    def publish_directory(self, directory: Path, actor_id: UUID) -> list[StatutorySchedule]:
        """Publish every ``*.yaml`` schedule in ``directory``."""
        return [
            self.publish(load_yaml_file(path), actor_id)
            for path in sorted(Path(directory).glob("*.yaml"))
        ]

    def deactivate(self, version: str, actor_id: UUID) -> None:
        with self.transaction("statutory_schedule", version):
            row = self.session.scalars(
                select(StatutoryScheduleModel).where(StatutoryScheduleModel.version == version)
            ).one_or_none()
            if row is None:
                raise NotFoundError("StatutorySchedule", version)
            row.is_active = False
            row.updated_by_id = actor_id
        logger.info("statutory_schedule_deactivated", extra={"schedule_version": version})

    def active_for(self, as_of: date) -> StatutorySchedule:
        """The active schedule with the latest effective date on or before ``as_of``."""
        row = self.session.scalars(
            select(StatutoryScheduleModel)
            .where(
                StatutoryScheduleModel.is_active.is_(True),
                StatutoryScheduleModel.effective_date <= as_of,
            )
            .order_by(StatutoryScheduleModel.effective_date.desc())
            .limit(1)
        ).first()
        if row is None:
            raise ScheduleNotFoundError(as_of.isoformat())
        return _hydrate(row)

    def registry(self) -> ScheduleRegistry:
        """Every active schedule as an in-memory registry for payroll runs."""
        rows = self.session.scalars(
            select(StatutoryScheduleModel).where(StatutoryScheduleModel.is_active.is_(True))
        )
        return ScheduleRegistry([_hydrate(row) for row in rows])


def _hydrate(row: StatutoryScheduleModel) -> StatutorySchedule:
    return parse_schedule(dict(row.payload), checksum=row.checksum)
