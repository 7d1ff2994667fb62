"""Disciplinary Workflows.

Twin-notice state machine: a notice is answered (or not) and then resolved
with a sanction.  Resolution is final.
"""

from payroll_kernel.domain.workflow import Guard, Transition, Workflow
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.disciplinary.workflows")


SANCTION_CHOSEN = Guard(
    name="sanction_chosen",
    description="A sanction from the ordered set is recorded",
)

DISCIPLINARY_NOTICE_WORKFLOW = Workflow(
    name="disciplinary_notice",
    description="Notice to explain, explanation and resolution",
    initial_state="issued",
    states=("issued", "explanation_received", "resolved"),
    transitions=(
        Transition("issued", "explanation_received", action="submit_explanation"),
        Transition("issued", "resolved", action="resolve", guard=SANCTION_CHOSEN),
        Transition("explanation_received", "resolved", action="resolve", guard=SANCTION_CHOSEN),
    ),
    terminal_states=("resolved",),
)

logger.info(
    "disciplinary_notice_workflow_registered",
    extra={
        "workflow_name": DISCIPLINARY_NOTICE_WORKFLOW.name,
        "state_count": len(DISCIPLINARY_NOTICE_WORKFLOW.states),
        "transition_count": len(DISCIPLINARY_NOTICE_WORKFLOW.transitions),
    },
)
