"""Replace-tiers operation state machine.

State Flow:
    VALIDATING → PERSISTING → SYNCING_NEW → GATE → ARCHIVING_OLD → DONE
                                             GATE → PARTIAL_FAILURE

VALIDATING and PERSISTING may also end in ABORTED (nothing persisted).
Retry-sync runs enter at SYNCING_NEW.

Terminal States: DONE, PARTIAL_FAILURE, ABORTED
"""

from enum import Enum
from typing import List


class ReplaceState(str, Enum):
    """States of one replace-tiers (or retry-sync) run."""
    VALIDATING = "VALIDATING"
    PERSISTING = "PERSISTING"
    SYNCING_NEW = "SYNCING_NEW"
    GATE = "GATE"
    ARCHIVING_OLD = "ARCHIVING_OLD"
    DONE = "DONE"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    ABORTED = "ABORTED"


ALLOWED_TRANSITIONS = {
    ReplaceState.VALIDATING: [ReplaceState.PERSISTING, ReplaceState.SYNCING_NEW, ReplaceState.ABORTED],
    ReplaceState.PERSISTING: [ReplaceState.SYNCING_NEW, ReplaceState.ABORTED],
    ReplaceState.SYNCING_NEW: [ReplaceState.GATE],
    ReplaceState.GATE: [ReplaceState.ARCHIVING_OLD, ReplaceState.PARTIAL_FAILURE],
    ReplaceState.ARCHIVING_OLD: [ReplaceState.DONE],
    ReplaceState.DONE: [],  # Terminal state
    ReplaceState.PARTIAL_FAILURE: [],  # Terminal state
    ReplaceState.ABORTED: [],  # Terminal state
}


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def validate_transition(current_state: ReplaceState, new_state: ReplaceState) -> None:
    """Validate that a state transition is allowed.

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = ALLOWED_TRANSITIONS.get(current_state, [])
    if new_state not in allowed:
        raise StateTransitionError(
            f"Invalid transition: {current_state.value} -> {new_state.value}. "
            f"Allowed transitions from {current_state.value}: "
            f"{[s.value for s in allowed]}"
        )


class ReplaceRun:
    """Tracks the state of one run and records the path it took."""

    def __init__(self, start: ReplaceState = ReplaceState.VALIDATING):
        self.state = start
        self.history: List[ReplaceState] = [start]

    def advance(self, new_state: ReplaceState) -> None:
        validate_transition(self.state, new_state)
        self.state = new_state
        self.history.append(new_state)
