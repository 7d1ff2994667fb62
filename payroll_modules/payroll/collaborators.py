"""
External collaborator contracts for payroll generation.

Employee records, attendance capture, leave bookkeeping and audit-log
persistence are owned by other systems.  The payroll service only sees the
interfaces below; callers wire in their own implementations.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol
from uuid import UUID

from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import (
    AttendanceAggregate,
    EmployeeRateConfig,
    LeaveAggregate,
    PayPeriod,
)

logger = get_logger("modules.payroll.audit")


class EmployeeDirectory(Protocol):
    def employees_for(self, period: PayPeriod) -> Iterable[EmployeeRateConfig]:
        """Employees in scope for the period, with their rate configuration."""
        ...


class AttendanceProvider(Protocol):
    def aggregate_for(self, employee_id: UUID, period: PayPeriod) -> AttendanceAggregate:
        ...


class LeaveProvider(Protocol):
    def aggregate_for(self, employee_id: UUID, period: PayPeriod) -> LeaveAggregate:
        ...


class AuditSink(Protocol):
    """Fire-and-forget audit trail.  Must not raise into the caller."""

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor_id: UUID,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        ...


class LoggingAuditSink:
    """Default sink: one structured log line per audited action."""

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor_id: UUID,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        logger.info(
            "audit_event",
            extra={
                "audit_action": action,
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "audit_actor_id": str(actor_id),
                "details": dict(details or {}),
            },
        )


def emit_audit(
    sink: AuditSink,
    action: str,
    entity_type: str,
    entity_id: UUID,
    actor_id: UUID,
    details: Mapping[str, Any] | None = None,
) -> None:
    """Send one audit event; a failing sink is logged, never raised."""
    try:
        sink.record(action, entity_type, entity_id, actor_id, details)
    except Exception:
        logger.warning(
            "audit_sink_failed",
            extra={
                "audit_action": action,
                "entity_type": entity_type,
                "entity_id": str(entity_id),
            },
            exc_info=True,
        )
