"""Startup State Machine — pure transition rules for the orchestrator lifecycle.

Invariants:
    - IDLE -> STORE_STARTING -> STORE_READY -> FRONT_STARTING -> RUNNING is the only success path
    - FAILED is reachable from STORE_STARTING and FRONT_STARTING only
    - RUNNING and FAILED are terminal
    - FRONT_STARTING is unreachable unless STORE_READY was reached first

Design Decisions:
    - Transition table as data: the orchestrator stays a linear sequence of steps,
      the legality check lives here (no IO, trivially testable)
"""

from wiki.core.domain_types import StartupState
from wiki.core.errors import IllegalTransitionError


TRANSITIONS: dict[StartupState, frozenset[StartupState]] = {
    StartupState.IDLE: frozenset({StartupState.STORE_STARTING}),
    StartupState.STORE_STARTING: frozenset({
        StartupState.STORE_READY, StartupState.FAILED,
    }),
    StartupState.STORE_READY: frozenset({StartupState.FRONT_STARTING}),
    StartupState.FRONT_STARTING: frozenset({
        StartupState.RUNNING, StartupState.FAILED,
    }),
    StartupState.RUNNING: frozenset(),
    StartupState.FAILED: frozenset(),
}


def can_transition(current: StartupState, target: StartupState) -> bool:
    return target in TRANSITIONS[current]


def advance(current: StartupState, target: StartupState) -> StartupState:
    """Return target if the lifecycle allows current -> target, else raise."""
    if not can_transition(current, target):
        raise IllegalTransitionError(current.value, target.value)
    return target


def is_terminal(state: StartupState) -> bool:
    return not TRANSITIONS[state]
