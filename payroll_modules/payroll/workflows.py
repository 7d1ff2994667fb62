"""Payroll Workflows.

State machines for payroll records and pay periods.
"""

from payroll_kernel.domain.workflow import Guard, Transition, Workflow
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

ADVANCE_LEDGER_RECONCILED = Guard(
    name="advance_ledger_reconciled",
    description="Committed advance deductions equal the record's cash advance line",
)

ALL_RECORDS_RELEASED = Guard(
    name="all_records_released",
    description="Every payroll record in the period is released",
)

logger.info(
    "payroll_workflow_guards_defined",
    extra={
        "guards": [
            ADVANCE_LEDGER_RECONCILED.name,
            ALL_RECORDS_RELEASED.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Payroll Record Workflow
# -----------------------------------------------------------------------------

PAYROLL_RECORD_WORKFLOW = Workflow(
    name="payroll_record",
    description="Per-employee payroll lifecycle",
    initial_state="draft",
    states=("draft", "approved", "released"),
    transitions=(
        Transition(
            "draft", "approved", action="approve",
            guard=ADVANCE_LEDGER_RECONCILED, moves_money=True,
        ),
        Transition("approved", "released", action="release", moves_money=True),
    ),
    terminal_states=("released",),
)

logger.info(
    "payroll_record_workflow_registered",
    extra={
        "workflow_name": PAYROLL_RECORD_WORKFLOW.name,
        "state_count": len(PAYROLL_RECORD_WORKFLOW.states),
        "transition_count": len(PAYROLL_RECORD_WORKFLOW.transitions),
    },
)


# -----------------------------------------------------------------------------
# Pay Period Workflow
# -----------------------------------------------------------------------------

PAY_PERIOD_WORKFLOW = Workflow(
    name="pay_period",
    description="Pay period lifecycle",
    initial_state="open",
    states=("open", "processing", "closed"),
    transitions=(
        Transition("open", "processing", action="generate"),
        Transition("processing", "closed", action="close", guard=ALL_RECORDS_RELEASED),
    ),
    terminal_states=("closed",),
)

logger.info(
    "pay_period_workflow_registered",
    extra={
        "workflow_name": PAY_PERIOD_WORKFLOW.name,
        "state_count": len(PAY_PERIOD_WORKFLOW.states),
        "transition_count": len(PAY_PERIOD_WORKFLOW.transitions),
    },
)
