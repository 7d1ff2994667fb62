"""
Tests for the lifecycle state machines.

Each workflow is checked against its full transition table: every allowed
step, every forbidden step and the terminal states.
"""

from itertools import product

import pytest

from payroll_kernel.domain.workflow import Transition, Workflow
from payroll_kernel.exceptions import InvalidTransitionError
from payroll_modules.advances.models import AdvanceStatus
from payroll_modules.advances.workflows import SALARY_ADVANCE_WORKFLOW
from payroll_modules.disciplinary.models import NoticeStatus
from payroll_modules.disciplinary.workflows import DISCIPLINARY_NOTICE_WORKFLOW
from payroll_modules.payroll.models import PayPeriodStatus, PayrollRecordStatus
from payroll_modules.payroll.workflows import PAY_PERIOD_WORKFLOW, PAYROLL_RECORD_WORKFLOW

ALLOWED = {
    PAYROLL_RECORD_WORKFLOW.name: {("draft", "approved"), ("approved", "released")},
    PAY_PERIOD_WORKFLOW.name: {("open", "processing"), ("processing", "closed")},
    SALARY_ADVANCE_WORKFLOW.name: {
        ("pending", "approved"),
        ("pending", "rejected"),
        ("approved", "rejected"),
        ("approved", "disbursed"),
        ("disbursed", "fully_paid"),
    },
    DISCIPLINARY_NOTICE_WORKFLOW.name: {
        ("issued", "explanation_received"),
        ("issued", "resolved"),
        ("explanation_received", "resolved"),
    },
}

WORKFLOWS = [
    PAYROLL_RECORD_WORKFLOW,
    PAY_PERIOD_WORKFLOW,
    SALARY_ADVANCE_WORKFLOW,
    DISCIPLINARY_NOTICE_WORKFLOW,
]


class TestTransitionTables:

    @pytest.mark.parametrize("workflow", WORKFLOWS, ids=lambda w: w.name)
    def test_every_pair(self, workflow):
        allowed = ALLOWED[workflow.name]
        for src, dst in product(workflow.states, repeat=2):
            assert workflow.can_transition(src, dst) == ((src, dst) in allowed), (src, dst)

    @pytest.mark.parametrize("workflow", WORKFLOWS, ids=lambda w: w.name)
    def test_terminal_states_have_no_exits(self, workflow):
        for state in workflow.terminal_states:
            assert workflow.allowed_targets(state) == frozenset()

    def test_terminal_states(self):
        assert PAYROLL_RECORD_WORKFLOW.is_terminal(PayrollRecordStatus.RELEASED)
        assert PAY_PERIOD_WORKFLOW.is_terminal(PayPeriodStatus.CLOSED)
        assert SALARY_ADVANCE_WORKFLOW.is_terminal(AdvanceStatus.FULLY_PAID)
        assert SALARY_ADVANCE_WORKFLOW.is_terminal(AdvanceStatus.REJECTED)
        assert not SALARY_ADVANCE_WORKFLOW.is_terminal(AdvanceStatus.DISBURSED)
        assert DISCIPLINARY_NOTICE_WORKFLOW.is_terminal(NoticeStatus.RESOLVED)

    def test_status_enums_match_workflow_states(self):
        assert set(PAYROLL_RECORD_WORKFLOW.states) == {s.value for s in PayrollRecordStatus}
        assert set(PAY_PERIOD_WORKFLOW.states) == {s.value for s in PayPeriodStatus}
        assert set(SALARY_ADVANCE_WORKFLOW.states) == {s.value for s in AdvanceStatus}
        assert set(DISCIPLINARY_NOTICE_WORKFLOW.states) == {s.value for s in NoticeStatus}

    def test_money_moving_transitions(self):
        assert PAYROLL_RECORD_WORKFLOW.transition_for("draft", "approved").moves_money
        assert SALARY_ADVANCE_WORKFLOW.transition_for("approved", "disbursed").moves_money
        assert not SALARY_ADVANCE_WORKFLOW.transition_for("pending", "approved").moves_money


class TestRequireTransition:

    def test_returns_transition(self):
        transition = PAYROLL_RECORD_WORKFLOW.require_transition(
            "rec-1", PayrollRecordStatus.DRAFT, PayrollRecordStatus.APPROVED,
        )
        assert transition.action == "approve"

    def test_raises_with_context(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            PAYROLL_RECORD_WORKFLOW.require_transition("rec-1", "released", "draft")
        err = exc_info.value
        assert err.workflow == "payroll_record"
        assert err.entity_id == "rec-1"
        assert (err.from_state, err.to_state) == ("released", "draft")
        assert err.code == "INVALID_TRANSITION"


class TestWorkflowDefinition:

    def test_unknown_initial_state(self):
        with pytest.raises(ValueError):
            Workflow(
                name="w", description="", initial_state="x",
                states=("a",), transitions=(),
            )

    def test_transition_to_unknown_state(self):
        with pytest.raises(ValueError):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a",), transitions=(Transition("a", "b", action="go"),),
            )

    def test_terminal_state_with_exit(self):
        with pytest.raises(ValueError):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a", "b"), transitions=(Transition("b", "a", action="back"),),
                terminal_states=("b",),
            )
