"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Payroll money must not drift after HR has signed it off.  Once a payroll
record is approved its lines are what the employee is paid; once an advance
deduction or payslip is written it is the audit trail.  Service code already
checks these rules; this module enforces them again at flush time so that a
stray attribute assignment anywhere in the code base cannot slip through.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements are sent:

    session.flush()
         |
         v
    [before_update event] --> _check_*() --> ImmutabilityViolationError
         |                                            ^
         v                                            |
    [before_delete event] --> _check_*_delete() ------+
         |
         v
    SQL sent to database (only if checks pass)

The previous value of a column comes from attribute history, so a row is
judged by the state it was in BEFORE this flush: the DRAFT -> APPROVED
update itself is allowed, anything after it is not.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable                        | Mutable afterward
--------------------|---------------------------------------|--------------------------
PayrollRecord       | After status leaves DRAFT             | status, approval/release
PayPeriod           | After status = CLOSED                 | nothing
Payslip             | ALWAYS                                | nothing
AdvanceDeduction    | ALWAYS                                | nothing
SalaryAdvance       | amount, deduction_per_cutoff always;  | status, balance (down only)
                    | everything once FULLY_PAID / REJECTED |
DisciplinaryNotice  | issued_date, response_deadline        | nothing once RESOLVED
                    | always; everything once RESOLVED      |
Explanation         | ALWAYS                                | nothing
StatutorySchedule   | version, dates, payload always        | is_active

updated_at and updated_by_id may always change: they record who touched a
row, not what it says.

===============================================================================
USAGE
===============================================================================

Called by ``payroll_kernel.db.engine.create_tables()``:

    from payroll_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # idempotent

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from payroll_kernel.exceptions import ImmutabilityViolationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

AUDIT_COLUMNS = frozenset({"updated_at", "updated_by_id"})


# =============================================================================
# Helpers
# =============================================================================

def _previous_value(target, key):
    """Value of ``key`` as it was before the pending flush."""
    hist = get_history(target, key)
    if hist.deleted:
        return hist.deleted[0]
    if hist.unchanged:
        return hist.unchanged[0]
    return getattr(target, key)


def _changed_columns(target, allowed=frozenset()) -> list[str]:
    insp = inspect(target)
    changed = []
    for attr in insp.mapper.column_attrs:
        if attr.key in allowed or attr.key in AUDIT_COLUMNS:
            continue
        if insp.attrs[attr.key].history.has_changes():
            changed.append(attr.key)
    return changed


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _block_frozen_columns(entity_type, target, columns, state_desc):
    for key in columns:
        if get_history(target, key).has_changes():
            _block(
                entity_type, target, "UPDATE",
                f"Cannot modify field '{key}' {state_desc}", field=key,
            )


# =============================================================================
# Payroll records and periods
# =============================================================================

def _check_payroll_record_immutability(mapper, connection, target):
    """
    Only status and approval/release columns change after DRAFT, and only
    along the payroll record workflow.
    """
    from payroll_modules.payroll.orm import STATUS_COLUMNS
    from payroll_modules.payroll.workflows import PAYROLL_RECORD_WORKFLOW

    previous = _previous_value(target, "status")
    current = target.status
    if previous != current and not PAYROLL_RECORD_WORKFLOW.can_transition(previous, current):
        _block(
            "PayrollRecord", target, "UPDATE",
            f"Illegal status change {previous} -> {current}", field="status",
        )

    if previous == "draft":
        return

    changed = _changed_columns(target, allowed=STATUS_COLUMNS)
    if changed:
        _block(
            "PayrollRecord", target, "UPDATE",
            f"Cannot modify field '{changed[0]}' on {previous} payroll record",
            field=changed[0],
        )


def _check_payroll_record_delete(mapper, connection, target):
    previous = _previous_value(target, "status")
    if previous != "draft":
        _block("PayrollRecord", target, "DELETE", f"Cannot delete {previous} payroll record")


def _check_pay_period_immutability(mapper, connection, target):
    if _previous_value(target, "status") != "closed":
        return
    changed = _changed_columns(target)
    if changed:
        _block(
            "PayPeriod", target, "UPDATE",
            f"Cannot modify field '{changed[0]}' on closed pay period", field=changed[0],
        )


def _check_pay_period_delete(mapper, connection, target):
    if _previous_value(target, "status") != "open":
        _block("PayPeriod", target, "DELETE", "Only open pay periods can be deleted")


# =============================================================================
# Append-only rows
# =============================================================================

def _append_only(entity_type: str):
    def check_update(mapper, connection, target):
        changed = _changed_columns(target)
        if changed:
            _block(
                entity_type, target, "UPDATE",
                f"{entity_type} records are immutable", field=changed[0],
            )

    def check_delete(mapper, connection, target):
        _block(entity_type, target, "DELETE", f"{entity_type} records cannot be deleted")

    check_update.__name__ = f"_check_{entity_type.lower()}_immutability"
    check_delete.__name__ = f"_check_{entity_type.lower()}_delete"
    return check_update, check_delete


_check_payslip_immutability, _check_payslip_delete = _append_only("Payslip")
_check_advance_deduction_immutability, _check_advance_deduction_delete = _append_only(
    "AdvanceDeduction"
)
_check_explanation_immutability, _check_explanation_delete = _append_only("Explanation")


# =============================================================================
# Salary advances
# =============================================================================

def _check_salary_advance_immutability(mapper, connection, target):
    """
    Principal terms never change; the balance is set once to the principal
    and only ever decreases; terminal advances are frozen.
    """
    from payroll_modules.advances.workflows import SALARY_ADVANCE_WORKFLOW

    previous = _previous_value(target, "status")
    if SALARY_ADVANCE_WORKFLOW.is_terminal(previous):
        changed = _changed_columns(target)
        if changed:
            _block(
                "SalaryAdvance", target, "UPDATE",
                f"Cannot modify field '{changed[0]}' on {previous} advance",
                field=changed[0],
            )
        return

    _block_frozen_columns(
        "SalaryAdvance", target,
        ("employee_id", "amount", "deduction_per_cutoff"), "after request",
    )

    if target.status != previous and not SALARY_ADVANCE_WORKFLOW.can_transition(
        previous, target.status,
    ):
        _block(
            "SalaryAdvance", target, "UPDATE",
            f"Illegal status change {previous} -> {target.status}", field="status",
        )

    balance = get_history(target, "remaining_balance")
    if not balance.has_changes():
        return
    old = balance.deleted[0] if balance.deleted else None
    new = target.remaining_balance
    if old is None:
        if new is not None and new != target.amount:
            _block(
                "SalaryAdvance", target, "UPDATE",
                "remaining_balance must start at the advance amount",
                field="remaining_balance",
            )
    elif new is None or new > old:
        _block(
            "SalaryAdvance", target, "UPDATE",
            "remaining_balance cannot increase", field="remaining_balance",
        )
    elif new < 0:
        _block(
            "SalaryAdvance", target, "UPDATE",
            "remaining_balance cannot be negative", field="remaining_balance",
        )


def _check_salary_advance_delete(mapper, connection, target):
    previous = _previous_value(target, "status")
    if previous not in ("pending", "rejected"):
        _block("SalaryAdvance", target, "DELETE", f"Cannot delete {previous} advance")


# =============================================================================
# Disciplinary notices
# =============================================================================

def _check_disciplinary_notice_immutability(mapper, connection, target):
    previous = _previous_value(target, "status")
    if previous == "resolved":
        changed = _changed_columns(target)
        if changed:
            _block(
                "DisciplinaryNotice", target, "UPDATE",
                f"Cannot modify field '{changed[0]}' on resolved notice",
                field=changed[0],
            )
        return

    _block_frozen_columns(
        "DisciplinaryNotice", target,
        ("employee_id", "issued_date", "response_deadline"), "after issue",
    )
    if (target.status == "resolved") != (target.sanction is not None):
        _block(
            "DisciplinaryNotice", target, "UPDATE",
            "sanction is set exactly when the notice is resolved", field="sanction",
        )
    if (target.sanction == "suspension") != (target.suspension_days is not None):
        _block(
            "DisciplinaryNotice", target, "UPDATE",
            "suspension_days is set exactly for a suspension", field="suspension_days",
        )


def _check_disciplinary_notice_delete(mapper, connection, target):
    if _previous_value(target, "status") != "issued":
        _block("DisciplinaryNotice", target, "DELETE", "Answered or resolved notices cannot be deleted")


# =============================================================================
# Statutory schedules
# =============================================================================

def _check_statutory_schedule_immutability(mapper, connection, target):
    _block_frozen_columns(
        "StatutorySchedule", target,
        ("version", "effective_date", "checksum", "payload"), "on a published schedule",
    )


# =============================================================================
# Registration
# =============================================================================

def _listeners():
    from payroll_modules.advances.orm import AdvanceDeductionModel, SalaryAdvanceModel
    from payroll_modules.disciplinary.orm import DisciplinaryNoticeModel, ExplanationModel
    from payroll_modules.payroll.orm import PayPeriodModel, PayrollRecordModel, PayslipModel
    from payroll_modules.schedules.orm import StatutoryScheduleModel

    return (
        (PayrollRecordModel, "before_update", _check_payroll_record_immutability),
        (PayrollRecordModel, "before_delete", _check_payroll_record_delete),
        (PayPeriodModel, "before_update", _check_pay_period_immutability),
        (PayPeriodModel, "before_delete", _check_pay_period_delete),
        (PayslipModel, "before_update", _check_payslip_immutability),
        (PayslipModel, "before_delete", _check_payslip_delete),
        (SalaryAdvanceModel, "before_update", _check_salary_advance_immutability),
        (SalaryAdvanceModel, "before_delete", _check_salary_advance_delete),
        (AdvanceDeductionModel, "before_update", _check_advance_deduction_immutability),
        (AdvanceDeductionModel, "before_delete", _check_advance_deduction_delete),
        (DisciplinaryNoticeModel, "before_update", _check_disciplinary_notice_immutability),
        (DisciplinaryNoticeModel, "before_delete", _check_disciplinary_notice_delete),
        (ExplanationModel, "before_update", _check_explanation_immutability),
        (ExplanationModel, "before_delete", _check_explanation_delete),
        (StatutoryScheduleModel, "before_update", _check_statutory_schedule_immutability),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call after all module ORM models are imported.  Safe to call repeatedly.
    """
    count = 0
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)
            count += 1
    logger.info("immutability_listeners_registered", extra={"registered": count})


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that need to write a forbidden change.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
