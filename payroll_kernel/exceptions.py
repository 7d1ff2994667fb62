"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll errors move money or block money from moving. Callers must be able
to tell "the request was malformed" from "the record is in the wrong state"
from "an internal invariant broke" without parsing message strings.

Every exception:
  1. Is a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA (the offending ids and values)
  4. Has a message that names the violated invariant, e.g.
     "deduction_per_cutoff exceeds amount"

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- ValidationError
    |   +-- NegativeAmountError
    |   +-- NonPositiveAmountError
    |   +-- DeductionExceedsPrincipalError
    |   +-- RejectionReasonRequiredError
    |   +-- SanctionRequiredError
    |   +-- PeriodOverlapError
    |   +-- ScheduleValidationError
    |
    +-- StateError
    |   +-- InvalidTransitionError
    |   +-- RecordNotEditableError
    |   +-- DuplicateExplanationError
    |   +-- PeriodClosedError
    |   +-- PeriodNotClosableError
    |   +-- AdvanceNotDisbursedError
    |
    +-- NotFoundError
    |   +-- ScheduleNotFoundError
    |
    +-- ConsistencyError
    |   +-- LedgerInvariantError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                          | When Raised
--------------|-------------------------------|----------------------------------
Validation    | VALIDATION_ERROR              | Malformed or out-of-range input
              | NEGATIVE_AMOUNT               | Salary/rate/minutes below zero
              | NON_POSITIVE_AMOUNT           | Advance amount or installment <= 0
              | DEDUCTION_EXCEEDS_PRINCIPAL   | deduction_per_cutoff > amount
              | REJECTION_REASON_REQUIRED     | Advance rejected without reason
              | SANCTION_REQUIRED             | Notice resolved without sanction
              | PERIOD_OVERLAP                | Same-kind pay periods overlap
              | SCHEDULE_INVALID              | Bracket table not contiguous
--------------|-------------------------------|----------------------------------
State         | INVALID_TRANSITION            | Transition not in workflow table
              | RECORD_NOT_EDITABLE           | Money fields changed after DRAFT
              | DUPLICATE_EXPLANATION         | Second explanation for a notice
              | PERIOD_CLOSED                 | Generating into a closed period
              | PERIOD_NOT_CLOSABLE           | Closing with unreleased records
              | ADVANCE_NOT_DISBURSED         | Deducting from non-Disbursed advance
--------------|-------------------------------|----------------------------------
Not found     | NOT_FOUND                     | Unknown entity id
              | SCHEDULE_NOT_FOUND            | No schedule effective on a date
--------------|-------------------------------|----------------------------------
Consistency   | LEDGER_INVARIANT_VIOLATION    | Balance would go negative
--------------|-------------------------------|----------------------------------
Concurrency   | CONCURRENT_MODIFICATION       | Unique (employee, period) race
--------------|-------------------------------|----------------------------------
Immutability  | IMMUTABILITY_VIOLATION        | ORM update of a locked row

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        service.approve_payroll(record_id, actor_id)
    except StateError as e:
        return {"error": e.code, "message": str(e)}
    except ConsistencyError:
        # Programming error: the transaction was rolled back, escalate.
        raise

ValidationError and StateError are rejected before any mutation.
ConsistencyError is never reachable through the public API when the
workflows are implemented correctly; it aborts the transaction instead of
clamping silently.
"""

from __future__ import annotations

from decimal import Decimal


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Validation errors


class ValidationError(PayrollKernelError):
    """Input is malformed or out of range. Nothing was mutated."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)


class NegativeAmountError(ValidationError):
    """A monetary amount, rate or count that must be >= 0 was negative."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, field: str, value: Decimal | int):
        self.value = value
        super().__init__(field, f"{field} must not be negative (got {value})")


class NonPositiveAmountError(ValidationError):
    """A monetary amount that must be > 0 was zero or negative."""

    code: str = "NON_POSITIVE_AMOUNT"

    def __init__(self, field: str, value: Decimal | int):
        self.value = value
        super().__init__(field, f"{field} must be greater than zero (got {value})")


class DeductionExceedsPrincipalError(ValidationError):
    """An advance installment is larger than the advance itself."""

    code: str = "DEDUCTION_EXCEEDS_PRINCIPAL"

    def __init__(self, deduction_per_cutoff: Decimal, amount: Decimal):
        self.deduction_per_cutoff = deduction_per_cutoff
        self.amount = amount
        super().__init__(
            "deduction_per_cutoff",
            f"deduction_per_cutoff exceeds amount "
            f"({deduction_per_cutoff} > {amount})",
        )


class RejectionReasonRequiredError(ValidationError):
    """An advance was rejected without a reason."""

    code: str = "REJECTION_REASON_REQUIRED"

    def __init__(self, advance_id: str):
        self.advance_id = advance_id
        super().__init__(
            "rejection_reason",
            f"rejection_reason is required to reject advance {advance_id}",
        )


class SanctionRequiredError(ValidationError):
    """A disciplinary notice was resolved without a sanction."""

    code: str = "SANCTION_REQUIRED"

    def __init__(self, notice_id: str):
        self.notice_id = notice_id
        super().__init__(
            "sanction",
            f"sanction is required to resolve notice {notice_id}",
        )


class PeriodOverlapError(ValidationError):
    """A new pay period overlaps an existing period of the same cutoff kind."""

    code: str = "PERIOD_OVERLAP"

    def __init__(
        self,
        new_period_name: str,
        existing_period_name: str,
        cutoff_kind: str,
    ):
        self.new_period_name = new_period_name
        self.existing_period_name = existing_period_name
        self.cutoff_kind = cutoff_kind
        super().__init__(
            "date_range",
            f"Pay period {new_period_name} overlaps {cutoff_kind} "
            f"period {existing_period_name}",
        )


class ScheduleValidationError(ValidationError):
    """A statutory schedule failed structural validation on load."""

    code: str = "SCHEDULE_INVALID"

    def __init__(self, schedule_version: str, reason: str):
        self.schedule_version = schedule_version
        super().__init__(
            "schedule", f"Schedule {schedule_version} is invalid: {reason}"
        )


# State errors


class StateError(PayrollKernelError):
    """Operation is illegal in the entity's current state. State unchanged."""

    code: str = "STATE_ERROR"


class InvalidTransitionError(StateError):
    """Requested status change is not in the workflow's transition table."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        workflow: str,
        entity_id: str,
        from_state: str,
        to_state: str,
    ):
        self.workflow = workflow
        self.entity_id = entity_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"{workflow}: cannot move {entity_id} from {from_state} to {to_state}"
        )


class RecordNotEditableError(StateError):
    """Earnings or deduction lines of a non-DRAFT payroll record were changed."""

    code: str = "RECORD_NOT_EDITABLE"

    def __init__(self, record_id: str, status: str):
        self.record_id = record_id
        self.status = status
        super().__init__(
            f"Payroll record {record_id} is {status}; "
            "only draft records may be changed"
        )


class DuplicateExplanationError(StateError):
    """A notice already has its one explanation."""

    code: str = "DUPLICATE_EXPLANATION"

    def __init__(self, notice_id: str):
        self.notice_id = notice_id
        super().__init__(f"Notice {notice_id} already has an explanation")


class PeriodClosedError(StateError):
    """Payroll cannot be generated into a closed period."""

    code: str = "PERIOD_CLOSED"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Pay period {period_id} is closed")


class PeriodNotClosableError(StateError):
    """A period still has records that are not RELEASED."""

    code: str = "PERIOD_NOT_CLOSABLE"

    def __init__(self, period_id: str, unreleased_count: int):
        self.period_id = period_id
        self.unreleased_count = unreleased_count
        super().__init__(
            f"Pay period {period_id} has {unreleased_count} unreleased record(s)"
        )


class AdvanceNotDisbursedError(StateError):
    """A deduction was applied to an advance that is not Disbursed."""

    code: str = "ADVANCE_NOT_DISBURSED"

    def __init__(self, advance_id: str, status: str):
        self.advance_id = advance_id
        self.status = status
        super().__init__(
            f"Advance {advance_id} is {status}; deductions require disbursed"
        )


# Lookup errors


class NotFoundError(PayrollKernelError):
    """Entity with the given id does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class ScheduleNotFoundError(NotFoundError):
    """No statutory schedule is effective on the requested date."""

    code: str = "SCHEDULE_NOT_FOUND"

    def __init__(self, as_of: str):
        self.as_of = as_of
        super().__init__("StatutorySchedule", f"effective on {as_of}")


# Consistency errors


class ConsistencyError(PayrollKernelError):
    """Internal invariant violated. Indicates a programming error."""

    code: str = "CONSISTENCY_ERROR"


class LedgerInvariantError(ConsistencyError):
    """An advance balance would go negative or lost conservation."""

    code: str = "LEDGER_INVARIANT_VIOLATION"

    def __init__(self, advance_id: str, reason: str):
        self.advance_id = advance_id
        self.reason = reason
        super().__init__(f"Ledger invariant violated on advance {advance_id}: {reason}")


# Concurrency errors


class ConcurrencyError(PayrollKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """Another transaction created or changed the same row first."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Concurrent modification on {entity_type} {entity_id}: "
            "row was written by another transaction"
        )


# Immutability errors


class ImmutabilityError(PayrollKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable row.

    Approved/released payroll records, advance deduction rows, explanations
    and payslips are locked at the ORM layer.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
