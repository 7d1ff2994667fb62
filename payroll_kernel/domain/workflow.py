"""
Canonical workflow types (``payroll_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  The payroll record, salary
advance, disciplinary notice and pay period lifecycles are all declared as
``Workflow`` instances so that every status change is checked against one
explicit transition table instead of scattered conditionals.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
* ``require_transition`` is the single gate for status changes; it raises
  ``InvalidTransitionError`` and never mutates anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from payroll_kernel.exceptions import InvalidTransitionError


def _state_value(state: str | Enum) -> str:
    return state.value if isinstance(state, Enum) else str(state)


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the owning service does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``moves_money=True`` marks transitions with ledger side effects
    (advance deductions committed, payslip issued).
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    moves_money: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for an entity lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``; terminal states
    have no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()
    _table: dict[str, frozenset[str]] = field(
        init=False, repr=False, compare=False, hash=False,
    )

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"{self.name}: initial state {self.initial_state!r} not in states"
            )
        table: dict[str, set[str]] = {s: set() for s in self.states}
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: transition {t.action!r} references unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"{self.name}: terminal state {t.from_state!r} has outgoing "
                    f"transition {t.action!r}"
                )
            table[t.from_state].add(t.to_state)
        object.__setattr__(
            self, "_table", {k: frozenset(v) for k, v in table.items()},
        )

    def allowed_targets(self, from_state: str | Enum) -> frozenset[str]:
        """States reachable in one step from ``from_state``."""
        return self._table.get(_state_value(from_state), frozenset())

    def can_transition(self, from_state: str | Enum, to_state: str | Enum) -> bool:
        return _state_value(to_state) in self.allowed_targets(from_state)

    def is_terminal(self, state: str | Enum) -> bool:
        return _state_value(state) in self.terminal_states

    def transition_for(
        self, from_state: str | Enum, to_state: str | Enum,
    ) -> Transition | None:
        src, dst = _state_value(from_state), _state_value(to_state)
        for t in self.transitions:
            if t.from_state == src and t.to_state == dst:
                return t
        return None

    def require_transition(
        self,
        entity_id: object,
        from_state: str | Enum,
        to_state: str | Enum,
    ) -> Transition:
        """Return the matching transition or raise InvalidTransitionError.

        Preconditions: none; any pair of strings is accepted.
        Postconditions: returned Transition has matching endpoints.
        Raises: InvalidTransitionError when the pair is not in the table.
        """
        transition = self.transition_for(from_state, to_state)
        if transition is None:
            raise InvalidTransitionError(
                workflow=self.name,
                entity_id=str(entity_id),
                from_state=_state_value(from_state),
                to_state=_state_value(to_state),
            )
        return transition
