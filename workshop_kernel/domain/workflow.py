"""
Canonical workflow types (``workshop_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the workshop's state machines.  The bike lifecycle
and the FOH task lifecycle are both declared as a ``Workflow`` table
(state x action -> next state, optional guard) so no caller compares
status strings ad hoc.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* At most one transition exists per (from_state, action) pair.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Descriptive only: the workflow executor evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition.

    ``effects`` names the side effects the owning service applies together
    with the status write (e.g. ``claim_mechanic``).
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    effects: tuple[str, ...] = ()


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for an entity lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"{self.name}: initial state {self.initial_state!r} not in states"
            )
        seen: set[tuple[str, str]] = set()
        for t in self.transitions:
            for state in (t.from_state, t.to_state):
                if state not in self.states:
                    raise ValueError(f"{self.name}: unknown state {state!r} in {t.action}")
            key = (t.from_state, t.action)
            if key in seen:
                raise ValueError(f"{self.name}: duplicate transition {key}")
            seen.add(key)

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def actions_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def targets_of(self, action: str) -> frozenset[str]:
        return frozenset(t.to_state for t in self.transitions if t.action == action)

    @property
    def actions(self) -> frozenset[str]:
        return frozenset(t.action for t in self.transitions)
