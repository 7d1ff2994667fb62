"""Salary Advance Workflows.

State machine for the advance lifecycle.  Rejection is possible only before
money leaves the company; full payment is reached only through the ledger.
"""

from payroll_kernel.domain.workflow import Guard, Transition, Workflow
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.advances.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

REJECTION_REASON_GIVEN = Guard(
    name="rejection_reason_given",
    description="A non-blank rejection reason is recorded",
)

BALANCE_EXHAUSTED = Guard(
    name="balance_exhausted",
    description="Remaining balance is exactly zero",
)

logger.info(
    "advance_workflow_guards_defined",
    extra={"guards": [REJECTION_REASON_GIVEN.name, BALANCE_EXHAUSTED.name]},
)


# -----------------------------------------------------------------------------
# Salary Advance Workflow
# -----------------------------------------------------------------------------

SALARY_ADVANCE_WORKFLOW = Workflow(
    name="salary_advance",
    description="Salary advance request, disbursement and repayment",
    initial_state="pending",
    states=("pending", "approved", "disbursed", "fully_paid", "rejected"),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("pending", "rejected", action="reject", guard=REJECTION_REASON_GIVEN),
        Transition("approved", "rejected", action="reject", guard=REJECTION_REASON_GIVEN),
        Transition("approved", "disbursed", action="disburse", moves_money=True),
        Transition(
            "disbursed", "fully_paid", action="complete",
            guard=BALANCE_EXHAUSTED, moves_money=True,
        ),
    ),
    terminal_states=("fully_paid", "rejected"),
)

logger.info(
    "salary_advance_workflow_registered",
    extra={
        "workflow_name": SALARY_ADVANCE_WORKFLOW.name,
        "state_count": len(SALARY_ADVANCE_WORKFLOW.states),
        "transition_count": len(SALARY_ADVANCE_WORKFLOW.transitions),
    },
)
